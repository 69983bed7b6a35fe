import uuid
from sqlalchemy import BigInteger, Column, Index, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from imagemeta.db.deps import Base


class ModelUsage(Base):
    """One row per (user, model, calendar day); ingest merges into it."""

    __tablename__ = "model_usage"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "model_name", "usage_date", name="uq_model_usage_user_model_date"
        ),
        Index("ix_model_usage_timestamp", "timestamp"),
        Index("ix_model_usage_user_id", "user_id"),
        Index("ix_model_usage_model_name", "model_name"),
    )

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    model_name = Column(String(255), nullable=False)
    image_count = Column(Integer, nullable=False, default=0)
    user_id = Column(String(255), nullable=False)
    usage_date = Column(String(10), nullable=False)  # YYYY-MM-DD
    timestamp = Column(BigInteger, nullable=False)  # ms since epoch of the last update

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "modelName": self.model_name,
            "imageCount": self.image_count,
            "userId": self.user_id,
            "usageDate": self.usage_date,
            "timestamp": self.timestamp,
        }
