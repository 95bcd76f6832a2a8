from sqlalchemy.ext.asyncio import AsyncSession
from app.models.support.activity_event_models import ActivityEvent
from app.constants.activity_templates import ACTIVITY_TEMPLATES
from app.constants.activity_codes import ActivityCode


async def emit_activity(
    db: AsyncSession,
    *,
    tenant_id: int,
    user_id: int | None,
    username: str,
    code: ActivityCode,
    entity_type: str,
    entity_id: str | None = None,
    payload: dict | None = None,
    **context,
):
    template = ACTIVITY_TEMPLATES.get(code)
    if not template:
        raise ValueError(f"No activity template for code {code}")

    try:
        message = template.format(**context)
    except KeyError as e:
        raise ValueError(
            f"Missing activity context key: {e.args[0]} for {code}"
        )

    db.add(
        ActivityEvent(
            tenant_id=tenant_id,
            actor_user_id=user_id,
            actor_name_snapshot=username,
            code=code.value,
            entity_type=entity_type,
            entity_id=entity_id,
            message=message,
            payload=payload,
        )
    )
