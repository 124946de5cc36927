# Copyright (C) 2025 Antonio Paolillo. All rights reserved.
# SPDX-License-Identifier: MIT
"""
Patch requests and the values derived from them.

A `PatchRequest` describes one injection of a host file into a tagged image:

    image=app:v1  src=/host/bin/tool  dest=/usr/local/bin/tool

From it the workflow derives the staging path where the host file is bind-mounted inside the
ephemeral container, the bind string handed to the engine, and the entrypoint that copies the
staged file to its final destination:

    bind       = /host/bin/tool:/var/copy-to-image/usr/local/bin/tool
    entrypoint = /bin/cp -v /var/copy-to-image/usr/local/bin/tool /usr/local/bin/tool

Requests are purely declarative; nothing here talks to the container engine.
"""

import posixpath
from dataclasses import dataclass
from typing import List

from copytoimage.errors import InvalidReferenceError, MissingArgumentError

STAGING_ROOT = "/var/copy-to-image"
DEFAULT_CP = "/bin/cp"


@dataclass(frozen=True)
class ImageReference:
    """
    A `repository:tag` pair naming an image in the engine's image store.

    Only the plain two-part form is supported: registry `host:port` prefixes and digests are
    rejected rather than guessed at.

    Attributes:
        repository (str): Repository part of the reference, e.g. `app`.
        tag (str): Tag part of the reference, e.g. `v1`.
    """

    repository: str
    tag: str

    @classmethod
    def parse(cls, reference: str) -> "ImageReference":
        """
        Split an image reference into repository and tag.

        Parameters:
            reference (str): The reference, in `repository:tag` form.

        Returns:
            ImageReference: The parsed reference.

        Raises:
            InvalidReferenceError: If the reference does not contain exactly one `:`.
        """
        tokens = reference.split(":")
        if len(tokens) != 2:
            raise InvalidReferenceError(f'image must have image:tag format, got "{reference}"')
        repository, tag = tokens
        return cls(repository=repository, tag=tag)

    def __str__(self) -> str:
        return f"{self.repository}:{self.tag}"


def stage_path_for(dest: str, root: str = STAGING_ROOT) -> str:
    """
    Compute where a destination path is staged inside the ephemeral container.

    The destination keeps its sub-path structure below the staging root, so
    `/usr/local/bin/tool` is staged at `/var/copy-to-image/usr/local/bin/tool`.

    Parameters:
        dest (str): The in-image destination path.
        root (str): The staging root.

    Returns:
        str: The normalized staging path.
    """
    return posixpath.normpath(posixpath.join(root, dest.lstrip("/")))


@dataclass(frozen=True)
class PatchRequest:
    """
    One request to copy a host file into an existing tagged image.

    Attributes:
        image (str): Target image reference, `repository:tag`.
        src (str): Host path of the file to copy.
        dest (str): Destination path of the file inside the image.
        relabel (bool): Whether to append the `z` relabel option to the bind mount, needed on
                        SELinux hosts for the container to read a host-owned path.
        cp (str): Path of the copy utility inside the image.
    """

    image: str
    src: str
    dest: str
    relabel: bool = False
    cp: str = DEFAULT_CP

    def validate(self) -> "PatchRequest":
        """
        Check the request before any engine call is made.

        Returns:
            PatchRequest: The request itself, to allow chaining.

        Raises:
            MissingArgumentError: If `image`, `src`, `dest` or `cp` is empty.
            InvalidReferenceError: If `image` is not a `repository:tag` reference.
        """
        for name in ("image", "src", "dest", "cp"):
            if not getattr(self, name):
                raise MissingArgumentError(f"{name} is required")
        ImageReference.parse(self.image)
        return self

    @property
    def reference(self) -> ImageReference:
        """The parsed target image reference."""
        return ImageReference.parse(self.image)

    @property
    def stage_path(self) -> str:
        """Path where the host file is mounted inside the ephemeral container."""
        return stage_path_for(self.dest)

    @property
    def bind(self) -> str:
        """Bind specification mapping the host file onto the staging path."""
        bind = f"{self.src}:{self.stage_path}"
        if self.relabel:
            bind += ":z"
        return bind

    @property
    def entrypoint(self) -> List[str]:
        """Entrypoint of the ephemeral container: a verbose single-file copy."""
        return [self.cp, "-v", self.stage_path, self.dest]
