from wrapped.models.capture import CaptureSnapshotModel, CheckpointModel  # noqa: F401
from wrapped.models.order import OrderModel  # noqa: F401
