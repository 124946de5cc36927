# Copyright (C) 2025 Antonio Paolillo. All rights reserved.
# SPDX-License-Identifier: MIT

"""
This module implements the image-mutation workflow: a file from the host is injected into an
existing tagged image by running the image's own copy utility in a throwaway container, then
committing the container over the original tag with the original run configuration.

The steps run strictly in sequence:

    inspect -> create -> start -> wait -> commit -> remove

Any failure before the commit aborts the workflow with the matching `PatchError`; nothing is
retried or rolled back. Removal of the container is best-effort and only reported as a
`RemovalWarning`.
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from copytoimage.engine import (
    DEFAULT_ENDPOINT,
    ENGINE_ERRORS,
    ContainerEngine,
    DockerEngine,
    RunConfig,
)
from copytoimage.errors import (
    CommitError,
    ContainerCreateError,
    ContainerStartError,
    ContainerWaitError,
    CopyFailedError,
    ImageNotFoundError,
    RemovalWarning,
)
from copytoimage.request import ImageReference, PatchRequest

CONTAINER_USER = "root"

Progress = Callable[[str], None]

logger = logging.getLogger(__name__)


@dataclass
class PatchResult:
    """
    Outcome of a successful patch.

    Attributes:
        reference (ImageReference): The tag the new image was committed under.
        image_id (str): Id of the committed image.
        container_id (str): Id of the ephemeral container the copy ran in.
        warnings (List[RemovalWarning]): Non-fatal problems met after the commit.
    """

    reference: ImageReference
    image_id: str
    container_id: str
    warnings: List[RemovalWarning] = field(default_factory=list)


def commit_run_config(metadata: Dict[str, Any]) -> RunConfig:
    """
    Derive the run configuration to commit from an image inspection document.

    The configuration is the image's own, except that a missing or empty entrypoint becomes an
    explicit empty list: an unset entrypoint would make the commit inherit the entrypoint of the
    copy container.

    Parameters:
        metadata (Dict[str, Any]): The inspection document of the original image.

    Returns:
        RunConfig: A copy of the image's run configuration, normalized.
    """
    run_config = copy.deepcopy(metadata.get("Config") or {})
    if not run_config.get("Entrypoint"):
        run_config["Entrypoint"] = []
    return run_config


class ImagePatcher:
    """
    Runs patch requests against a connected container engine.
    """

    def __init__(
        self,
        engine: ContainerEngine,
        timeout: float | None = None,
        progress: Progress | None = None,
    ) -> None:
        """
        Parameters:
            engine (ContainerEngine): The engine to issue calls against.
            timeout (float | None): Optional bound, in seconds, on waiting for the copy to finish.
            progress (Progress | None): Called with a one-line message at each stage.
        """
        self._engine = engine
        self._timeout = timeout
        self._progress = progress

    def _report(self, message: str) -> None:
        if self._progress is not None:
            self._progress(message)

    def patch(self, request: PatchRequest) -> PatchResult:
        """
        Copy the requested file into the image and commit the result over the same tag.

        The prior image under that tag is not kept; it becomes untagged.

        Parameters:
            request (PatchRequest): The patch to perform.

        Returns:
            PatchResult: The committed image and any removal warning.

        Raises:
            PatchError: The subclass matching the first step that failed.
        """
        request.validate()
        reference = request.reference
        engine = self._engine
        self._report(f"Copying {request.src} -> {request.image}:{request.dest}")

        try:
            metadata = engine.inspect_image(request.image)
        except ENGINE_ERRORS as err:
            raise ImageNotFoundError(f'error inspecting image "{request.image}": {err}') from err

        try:
            container_id = engine.create_container(
                image=request.image,
                user=CONTAINER_USER,
                entrypoint=request.entrypoint,
                binds=[request.bind],
            )
        except ENGINE_ERRORS as err:
            raise ContainerCreateError(f"error creating container: {err}") from err

        try:
            engine.start_container(container_id)
        except ENGINE_ERRORS as err:
            raise ContainerStartError(f"error starting container {container_id}: {err}") from err

        try:
            status = engine.wait_container(container_id, timeout=self._timeout)
        except ENGINE_ERRORS as err:
            raise ContainerWaitError(f"container {container_id} wait failed: {err}") from err
        if status != 0:
            raise CopyFailedError(f"container {container_id} exited {status}", exit_status=status)
        self._report(f"Created container {container_id}")

        try:
            image_id = engine.commit_container(
                container_id,
                repository=reference.repository,
                tag=reference.tag,
                run_config=commit_run_config(metadata),
            )
        except ENGINE_ERRORS as err:
            raise CommitError(f"error committing container {container_id}: {err}") from err
        self._report(f"Committed {reference} (image {image_id})")

        result = PatchResult(reference=reference, image_id=image_id, container_id=container_id)
        try:
            engine.remove_container(container_id)
        except ENGINE_ERRORS as err:
            warning = RemovalWarning(container_id, str(err))
            logger.warning("%s", warning)
            result.warnings.append(warning)
        return result


def patch(
    request: PatchRequest,
    engine: ContainerEngine | None = None,
    endpoint: str = DEFAULT_ENDPOINT,
    timeout: float | None = None,
    progress: Progress | None = None,
) -> PatchResult:
    """
    Validate a request, connect to the engine if needed, and patch the image.

    Parameters:
        request (PatchRequest): The patch to perform.
        engine (ContainerEngine | None): Engine to use; a DockerEngine is connected on `endpoint`
                                         when omitted.
        endpoint (str): Engine control socket used when no engine is given.
        timeout (float | None): Optional bound, in seconds, on waiting for the copy to finish.
        progress (Progress | None): Called with a one-line message at each stage.

    Returns:
        PatchResult: The committed image and any removal warning.
    """
    request.validate()
    if engine is None:
        engine = DockerEngine.connect(endpoint=endpoint)
    return ImagePatcher(engine=engine, timeout=timeout, progress=progress).patch(request)
