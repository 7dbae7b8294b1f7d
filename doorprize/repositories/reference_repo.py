from sqlalchemy.orm import Session
from typing import Optional
from doorprize.models.website import Website
from doorprize.models.draw import Draw


class ReferenceRepository:
    """Read-only access to websites and draws"""

    def __init__(self, db: Session):
        self.db = db

    def get_website(self, website_id: str) -> Optional[Website]:
        return self.db.query(Website).filter(Website.id == website_id).first()

    def get_draw(self, draw_id: str) -> Optional[Draw]:
        return self.db.query(Draw).filter(Draw.id == draw_id).first()

    def get_latest_live_draw(self) -> Optional[Draw]:
        """Most recent draw that has a live stream URL"""
        return (
            self.db.query(Draw)
            .filter(Draw.live_url.isnot(None), Draw.live_url != "")
            .order_by(Draw.created_at.desc())
            .first()
        )
