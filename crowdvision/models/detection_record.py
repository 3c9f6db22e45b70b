# crowdvision/models/detection_record.py
"""
Detection log table.
One row per detection batch accepted by POST /detect, with the count and the
density it was classified as. Used for audit and GET /detections.
"""

from sqlalchemy import Column, Integer, String, DateTime
from crowdvision.database import Base


class DetectionRecord(Base):
    __tablename__ = "detection_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    zone_id = Column(String(100), nullable=False, index=True)
    zone_name = Column(String(200))
    count = Column(Integer, nullable=False)
    density_level = Column(String(20), nullable=False)
    detected_at = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False)

    def __repr__(self):
        return f"<DetectionRecord {self.id} zone={self.zone_id} count={self.count} density={self.density_level}>"
