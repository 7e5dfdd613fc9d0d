"""artifactsync: host artifact content on IPFS.

Reads artifact files from a git repository, resolves the latest content ID
of every artifact file, builds a directory tree over them and keeps IPFS
pinning services and archival storage in sync with it:
  - per-filename merge across the full git history
  - content deduplication by multihash (CIDv0/CIDv1 agnostic)
  - two-phase reconciliation tolerant of broken remote pagination
  - idempotent, provenance-tagged mutations, root last
"""

__version__ = "0.1.0"
__description__ = "Synchronize artifact content to IPFS pinning and archival services"

from artifactsync.core.engine import LocalSnapshot, SyncEngine
from artifactsync.cli.app import app as cli

__all__ = ["SyncEngine", "LocalSnapshot", "cli", "__version__"]
