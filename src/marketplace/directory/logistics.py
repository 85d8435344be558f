"""LogisticsProvider aggregate — a shipping partner shipments are booked with."""

from protean.fields import Boolean, String

from marketplace.domain import marketplace


@marketplace.aggregate
class LogisticsProvider:
    company_name = String(required=True, max_length=200)
    # e.g. "https://track.example.com/{tracking_number}"
    tracking_url_pattern = String(max_length=500)
    is_verified = Boolean(default=True)

    def tracking_url(self, tracking_number: str) -> str | None:
        if not self.tracking_url_pattern:
            return None
        return self.tracking_url_pattern.replace("{tracking_number}", tracking_number)
