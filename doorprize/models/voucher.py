from sqlalchemy import Column, String, BigInteger, Date, DateTime, Text, Index, text
from sqlalchemy.sql import func
from doorprize.database import Base

# Admin tooling later moves vouchers to "used" or "expired"
VOUCHER_STATUS_ACTIVE = "active"

PLAYER_STATUS_REAL = "real"


class Voucher(Base):
    __tablename__ = "lgx_voucher"

    id = Column(String(36), primary_key=True)
    lgx_voucher = Column(String, unique=True, nullable=False, index=True)

    # Participant (stored normalized)
    username = Column(String, nullable=False, index=True)
    websites_id = Column(String, nullable=False, index=True)
    nominal = Column(BigInteger, nullable=False)

    # Lifecycle
    status = Column(String, nullable=False, default=VOUCHER_STATUS_ACTIVE)
    player_status = Column(String, default=PLAYER_STATUS_REAL)
    expired_date = Column(Date)

    # Draw assignment, filled in by the draw process
    undian_id = Column(String, nullable=True)
    hasil_undi = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        # One active voucher per (username, website)
        Index(
            "uq_lgx_voucher_active_identity",
            "username",
            "websites_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )

    def to_dict(self) -> dict:
        return {c.name: getattr(self, c.name) for c in self.__table__.columns}
