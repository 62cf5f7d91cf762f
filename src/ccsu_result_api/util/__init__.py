from .debug_bundle import FAILURE_ARTIFACT_PREFIX, create_debug_bundle, failure_artifacts

__all__ = ["FAILURE_ARTIFACT_PREFIX", "create_debug_bundle", "failure_artifacts"]
