# Copyright (C) 2025 Antonio Paolillo. All rights reserved.
# SPDX-License-Identifier: MIT

"""
This module defines the narrow container-engine interface the patching workflow depends on, and
DockerEngine, its implementation over the Docker SDK's low-level API client talking to the local
control socket.
"""

import logging
from typing import Any, Dict, List, Protocol

import docker
from docker.errors import DockerException
from requests.exceptions import RequestException

from copytoimage.errors import EngineConnectionError

DEFAULT_ENDPOINT = "unix:///var/run/docker.sock"

# Exceptions an engine call may raise; the workflow maps them onto its error taxonomy.
ENGINE_ERRORS = (DockerException, RequestException)

RunConfig = Dict[str, Any]

logger = logging.getLogger(__name__)


class ContainerEngine(Protocol):
    """
    The operations of a container engine used to patch an image.

    Implementations raise one of `ENGINE_ERRORS` when an operation fails.
    """

    def inspect_image(self, image: str) -> Dict[str, Any]:
        """Return the inspection document of an image, including its `Config`."""
        ...

    def create_container(
        self,
        image: str,
        user: str,
        entrypoint: List[str],
        binds: List[str],
    ) -> str:
        """Create a container and return its id."""
        ...

    def start_container(self, container_id: str) -> None:
        """Start a created container."""
        ...

    def wait_container(self, container_id: str, timeout: float | None = None) -> int:
        """Block until the container exits and return its exit status."""
        ...

    def commit_container(
        self,
        container_id: str,
        repository: str,
        tag: str,
        run_config: RunConfig,
    ) -> str:
        """Commit the container as `repository:tag` with the given run configuration."""
        ...

    def remove_container(self, container_id: str) -> None:
        """Remove a container."""
        ...


class DockerEngine:
    """
    A ContainerEngine backed by `docker.APIClient`.

    The low-level client is used rather than `docker.DockerClient` because committing with a
    complete run configuration (`conf`) is only exposed there.
    """

    def __init__(self, client: docker.APIClient) -> None:
        """
        Wraps an already connected API client.

        Parameters:
            client (docker.APIClient): The client to issue engine calls with.
        """
        self._client = client

    @classmethod
    def connect(cls, endpoint: str = DEFAULT_ENDPOINT) -> "DockerEngine":
        """
        Connects to the engine listening on the given endpoint and checks it answers.

        Parameters:
            endpoint (str): Engine control socket URL.

        Returns:
            DockerEngine: An engine ready for use.

        Raises:
            EngineConnectionError: If the engine cannot be reached.
        """
        logger.info("connecting to %s", endpoint)
        try:
            # no per-request timeout: only the wait is bounded, by its own argument
            client = docker.APIClient(base_url=endpoint, version="auto", timeout=None)
            client.ping()
        except ENGINE_ERRORS as err:
            raise EngineConnectionError(f"cannot connect to {endpoint}: {err}") from err
        return cls(client=client)

    def inspect_image(self, image: str) -> Dict[str, Any]:
        """
        Inspects an image.

        Parameters:
            image (str): The image reference.

        Returns:
            Dict[str, Any]: The inspection document, with the run configuration under `Config`.
        """
        logger.info("inspect image %s", image)
        return self._client.inspect_image(image)

    def create_container(
        self,
        image: str,
        user: str,
        entrypoint: List[str],
        binds: List[str],
    ) -> str:
        """
        Creates a container without starting it.

        Parameters:
            image (str): The image to create the container from.
            user (str): The user the entrypoint runs as.
            entrypoint (List[str]): The entrypoint replacing the image's own.
            binds (List[str]): Bind mounts, as `host:container[:options]` strings.

        Returns:
            str: The id of the created container.
        """
        logger.info(
            "create container from %s [user=%s entrypoint=%s binds=%s]",
            image,
            user,
            " ".join(entrypoint),
            ",".join(binds),
        )
        container = self._client.create_container(
            image=image,
            user=user,
            entrypoint=entrypoint,
            host_config=self._client.create_host_config(binds=binds),
        )
        return container["Id"]

    def start_container(self, container_id: str) -> None:
        """
        Starts a created container.

        Parameters:
            container_id (str): The container to start.
        """
        logger.info("start container %s", container_id)
        self._client.start(container_id)

    def wait_container(self, container_id: str, timeout: float | None = None) -> int:
        """
        Blocks until a container exits.

        Parameters:
            container_id (str): The container to wait for.
            timeout (float | None): Seconds to wait before giving up; unbounded when None.

        Returns:
            int: The exit status of the container.
        """
        logger.info("wait container %s", container_id)
        result = self._client.wait(container_id, timeout=timeout)
        error = result.get("Error")
        if error:
            logger.debug("wait reported: %s", error)
        return result["StatusCode"]

    def commit_container(
        self,
        container_id: str,
        repository: str,
        tag: str,
        run_config: RunConfig,
    ) -> str:
        """
        Commits a container as a new image, replacing any image under the same tag.

        Parameters:
            container_id (str): The container to commit.
            repository (str): Repository of the new image.
            tag (str): Tag of the new image.
            run_config (RunConfig): Run configuration of the new image.

        Returns:
            str: The id of the committed image.
        """
        logger.info("commit container %s as %s:%s", container_id, repository, tag)
        image = self._client.commit(
            container_id,
            repository=repository,
            tag=tag,
            conf=run_config,
        )
        return image["Id"]

    def remove_container(self, container_id: str) -> None:
        """
        Removes a stopped container.

        Parameters:
            container_id (str): The container to remove.
        """
        logger.info("remove container %s", container_id)
        self._client.remove_container(container_id)
