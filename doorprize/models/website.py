from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from doorprize.database import Base


class Website(Base):
    __tablename__ = "lgx_websites"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
