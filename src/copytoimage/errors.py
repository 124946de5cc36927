# Copyright (C) 2025 Antonio Paolillo. All rights reserved.
# SPDX-License-Identifier: MIT

"""
Error taxonomy of the image-patching workflow.

Every fatal failure is a `PatchError` subclass naming the step that failed and carrying the exit
status the command line reports for it. Removal of the ephemeral container is the only
non-fatal failure and is modelled as a `RemovalWarning`.
"""


class PatchError(Exception):
    """
    Base class of all fatal workflow errors.

    Attributes:
        step (str): Name of the workflow step that failed.
        exit_code (int): Process exit status the command line maps this error to.
    """

    step = "patch"
    exit_code = 1

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.step}: {self.message}"


class MissingArgumentError(PatchError):
    """A required request field is empty."""

    step = "validate"


class InvalidReferenceError(PatchError):
    """The image reference does not have the `repository:tag` form."""

    step = "validate"


class EngineConnectionError(PatchError):
    """The container engine could not be reached on its control socket."""

    step = "connect"


class ImageNotFoundError(PatchError):
    """The target image could not be inspected."""

    step = "inspect"


class ContainerCreateError(PatchError):
    """The ephemeral container could not be created."""

    step = "create"
    exit_code = 2


class ContainerStartError(PatchError):
    """The ephemeral container was created but could not be started."""

    step = "start"


class ContainerWaitError(PatchError):
    """The exit of the ephemeral container could not be observed."""

    step = "wait"


class CopyFailedError(PatchError):
    """The copy utility exited with a non-zero status inside the container."""

    step = "wait"

    def __init__(self, message: str, exit_status: int) -> None:
        super().__init__(message)
        self.exit_status = exit_status


class CommitError(PatchError):
    """The container filesystem could not be committed as the target image."""

    step = "commit"


class RemovalWarning(UserWarning):
    """The ephemeral container could not be removed after a successful commit."""

    step = "remove"

    def __init__(self, container_id: str, message: str) -> None:
        super().__init__(f"could not remove container {container_id}: {message}")
        self.container_id = container_id
