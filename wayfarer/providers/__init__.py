"""Model backend adapters sharing the `BackendProvider` interface."""
