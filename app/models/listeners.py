from sqlalchemy import event

from app.models.base import utcnow
from app.models.rubric import ActiveRubricPointer, RubricConfig
from app.models.script import SalesScript


# Auto updated_at
@event.listens_for(RubricConfig, "before_update")
@event.listens_for(SalesScript, "before_update")
@event.listens_for(ActiveRubricPointer, "before_update")
def update_timestamp(mapper, connection, target):
    target.updated_at = utcnow()
