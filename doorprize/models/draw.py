from sqlalchemy import Column, String, Date, DateTime
from sqlalchemy.sql import func
from doorprize.database import Base


class Draw(Base):
    __tablename__ = "lgx_undian"

    id = Column(String, primary_key=True)
    kode_undian = Column(String, nullable=False, index=True)
    nama_undian = Column(String)
    live_url = Column(String, nullable=True)
    tanggal_undian = Column(Date)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
