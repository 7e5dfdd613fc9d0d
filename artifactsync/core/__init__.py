"""artifactsync core — identity, resolution, reconciliation and mutation."""
