"""Custom metrics for the menu catalog service."""

from opentelemetry import metrics

meter = metrics.get_meter("menu-svc")

catalog_mutation_counter = meter.create_counter(
    name="catalog_mutations_total",
    description="Total number of catalog writes by entity and operation",
    unit="1",
)

catalog_rejection_counter = meter.create_counter(
    name="catalog_rejections_total",
    description="Total number of catalog operations rejected with a domain error",
    unit="1",
)

primary_photo_reelection_counter = meter.create_counter(
    name="primary_photo_reelections_total",
    description="Number of times a remaining photo was promoted to primary",
    unit="1",
)

cascade_deleted_options_histogram = meter.create_histogram(
    name="modifier_cascade_deleted_options",
    description="Options removed when a modifier group is deleted",
    unit="1",
)


def record_catalog_mutation(entity: str, operation: str) -> None:
    """Record a successful catalog write.

    Args:
        entity: Entity kind (e.g., "menu_item", "modifier_group")
        operation: Operation performed (e.g., "create", "update", "delete")
    """
    catalog_mutation_counter.add(1, {"entity": entity, "operation": operation})


def record_catalog_rejection(entity: str, error_type: str) -> None:
    """Record a catalog operation rejected with a domain error.

    Args:
        entity: Entity kind the operation targeted
        error_type: Name of the domain error raised
    """
    catalog_rejection_counter.add(1, {"entity": entity, "error_type": error_type})


def record_primary_reelection() -> None:
    """Record that a photo was promoted after the primary one was removed."""
    primary_photo_reelection_counter.add(1)


def record_cascade_delete(option_count: int) -> None:
    """Record how many options a group deletion removed."""
    cascade_deleted_options_histogram.record(option_count)
