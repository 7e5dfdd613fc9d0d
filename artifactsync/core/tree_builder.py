"""Directory tree builder — root/<slug>/<filename> over existing nodes.

The tree is always exactly two levels deep. File nodes are never created or
re-hashed: each file link references a node the node service already knows
by its CID. Only directory nodes are created.

Any failure aborts the whole build; a partial root is never returned.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from multiformats import CID

from artifactsync.core.remote import NodeService
from artifactsync.models.artifacts import ArtifactLatestState
from artifactsync.models.jobs import DirectoryLink, DirectoryTree, RemoteNode

logger = logging.getLogger(__name__)


class TreeBuildError(RuntimeError):
    """Raised when a directory node cannot be linked or finalized."""


class DirectoryNode:
    """An in-memory directory node that has not been stored yet.

    Children are addressed by name; adding a name twice is an error.
    """

    def __init__(self) -> None:
        self._links: dict[str, DirectoryLink] = {}

    def add_child(self, name: str, node: RemoteNode) -> None:
        if not name.strip():
            raise ValueError("directory entry names can not be blank")
        if name in self._links:
            raise ValueError(f"duplicate directory entry: {name!r}")
        self._links[name] = DirectoryLink(name=name, cid=node.cid, size=node.size)

    @property
    def links(self) -> list[DirectoryLink]:
        return list(self._links.values())

    def __len__(self) -> int:
        return len(self._links)


class DirectoryTreeBuilder:
    """Builds the content-addressed directory tree for a set of artifacts.

    Parameters
    ----------
    nodes:
        The node service that resolves existing nodes and stores new
        directory nodes.
    """

    def __init__(self, nodes: NodeService) -> None:
        self._nodes = nodes

    def build(self, artifacts: Iterable[ArtifactLatestState]) -> DirectoryTree:
        """Build the tree and return the root CID.

        Artifacts with no usable file are omitted, as are files whose name
        is blank.
        """
        try:
            return self._build(artifacts)
        except TreeBuildError:
            raise
        except Exception as exc:
            raise TreeBuildError(f"failed to build the directory tree: {exc}") from exc

    def _build(self, artifacts: Iterable[ArtifactLatestState]) -> DirectoryTree:
        root = DirectoryNode()
        artifact_cids: dict[str, CID] = {}

        for artifact in artifacts:
            files = {
                filename: cid
                for filename, cid in artifact.files.items()
                if filename.strip()
            }
            if not files:
                logger.debug("Omitting artifact %s: no files", artifact.slug)
                continue

            artifact_dir = DirectoryNode()
            for filename, cid in files.items():
                artifact_dir.add_child(filename, self._nodes.resolve_node(cid))

            artifact_node = self._nodes.put_directory(artifact_dir.links)
            root.add_child(artifact.slug, artifact_node)
            artifact_cids[artifact.slug] = artifact_node.cid

        # The root is pinned locally so the node service keeps the whole tree
        # until destinations have fetched it.
        root_node = self._nodes.put_directory(root.links, pin=True)

        logger.info(
            "Built directory tree /ipfs/%s (%d artifacts)",
            root_node.cid,
            len(artifact_cids),
        )
        return DirectoryTree(root=root_node.cid, artifacts=artifact_cids)
