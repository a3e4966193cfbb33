"""Field-level edit history for assets."""

from django.utils import timezone

from ..models import Asset, AssetEditHistory


def actor_name(user) -> str:
    """Identifier written into audit fields for ``user``."""
    if user is None:
        return ""
    if isinstance(user, str):
        return user
    return getattr(user, "actor", None) or str(user)


def _as_text(value):
    if value is None or value == "":
        return None
    return str(value)


def record_edit(asset: Asset, field: str, old, new, user) -> AssetEditHistory | None:
    """Log one field change. Unchanged values are not recorded."""
    old_text, new_text = _as_text(old), _as_text(new)
    if old_text == new_text:
        return None
    return AssetEditHistory.objects.create(
        asset=asset,
        field_changed=field,
        old_value=old_text,
        new_value=new_text,
        changed_by=actor_name(user),
        changed_at=timezone.now(),
    )


def record_changes(asset: Asset, before: dict, user) -> list[AssetEditHistory]:
    """Compare ``before`` snapshot with the asset's current values."""
    entries = []
    for field, old in before.items():
        entry = record_edit(asset, field, old, getattr(asset, field), user)
        if entry is not None:
            entries.append(entry)
    return entries


def snapshot(asset: Asset, fields) -> dict:
    return {field: getattr(asset, field) for field in fields}


def history_for(asset: Asset):
    return asset.edit_history.all()
