from core.exceptions import NotFound
from properties.models import Property


def get_property(property_id) -> Property:
    """Return an active property or raise ``NotFound``."""
    try:
        return Property.objects.select_related("owner").get(pk=property_id, is_active=True)
    except (Property.DoesNotExist, ValueError, TypeError):
        raise NotFound("Property not found.")


def lock_property(property_id) -> Property:
    """
    Row-lock a property for the rest of the current transaction. Booking
    writes take this lock before checking for overlaps so two requests for
    the same dates cannot both pass the check.
    """
    return Property.objects.select_for_update().get(pk=property_id)
