"""Shared OTel metrics instruments for the service."""

from opentelemetry import metrics

METER_NAME = "blog_posts_api"

meter = metrics.get_meter(METER_NAME)

posts_created_total = meter.create_counter(
    name="posts_created_total",
    description="Total blog posts created through the API",
    unit="1",
)

posts_updated_total = meter.create_counter(
    name="posts_updated_total",
    description="Total blog posts updated through the API",
    unit="1",
)

posts_deleted_total = meter.create_counter(
    name="posts_deleted_total",
    description="Total blog posts deleted through the API",
    unit="1",
)

post_requests_rejected_total = meter.create_counter(
    name="post_requests_rejected_total",
    description="Requests rejected as invalid or not found",
    unit="1",
)
