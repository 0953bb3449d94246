import enum
import logging

logger = logging.getLogger(__name__)


class Resolution(enum.Enum):
    """
    Review outcome of an incident.
    flow: unspecified -> accepted | alerted | rejected, then freely between
    the three reviewed states. Every change goes through a review.
    """
    UNSPECIFIED = "unspecified"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    ALERTED = "alerted"

    @property
    def label(self) -> str:
        return LABELS[self]

    @classmethod
    def from_label(cls, label: str) -> "Resolution":
        try:
            return _BY_LABEL[label]
        except KeyError:
            logger.warning("unknown resolution label %r, reading as unspecified", label)
            return cls.UNSPECIFIED


# On-disk form. Stored rows depend on these exact strings.
LABELS: dict[Resolution, str] = {
    Resolution.UNSPECIFIED: "RESOLUTION_UNSPECIFIED",
    Resolution.ACCEPTED: "RESOLUTION_ACCEPTED",
    Resolution.REJECTED: "RESOLUTION_REJECTED",
    Resolution.ALERTED: "RESOLUTION_ALERTED",
}
_BY_LABEL: dict[str, Resolution] = {v: k for k, v in LABELS.items()}

# Resolutions that make an incident visible on the map.
PUBLISHED = (Resolution.ACCEPTED, Resolution.ALERTED)
