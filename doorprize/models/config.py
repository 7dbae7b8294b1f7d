from sqlalchemy import Column, Integer, BigInteger
from doorprize.database import Base


class VoucherConfig(Base):
    """Singleton row maintained by the admin tooling."""
    __tablename__ = "lgx_config"

    id = Column(Integer, primary_key=True)
    minimal_nominal = Column(BigInteger, nullable=False)
    max_day_exp_voucher = Column(Integer, nullable=False)
