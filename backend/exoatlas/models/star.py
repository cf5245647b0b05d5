from sqlalchemy import Column, Integer, String, Float, DateTime
from sqlalchemy.orm import relationship
from exoatlas.db.base_class import Base
from datetime import datetime


class Star(Base):
    __tablename__ = "stars"

    star_id = Column(Integer, primary_key=True, index=True)
    star_name = Column(String, nullable=False, index=True)
    distance_ly = Column(Float, nullable=False)
    # Solar units; the only driver of habitable-zone boundaries
    luminosity = Column(Float, nullable=False)
    spectral_type = Column(String(16), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    planets = relationship("Planet", back_populates="star", order_by="Planet.planet_id")
