from sqlalchemy import Column, Integer, String, Float, Date, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from exoatlas.db.base_class import Base
from datetime import datetime


class Planet(Base):
    __tablename__ = "planets"

    planet_id = Column(Integer, primary_key=True, index=True)
    star_id = Column(Integer, ForeignKey("stars.star_id"), nullable=False, index=True)
    planet_name = Column(String, nullable=False)
    planet_type = Column(String, nullable=False)
    # Null when the planet was entered with an orbital distance instead
    angular_separation_arcsec = Column(Float, nullable=True)
    discovery_method = Column(String, default="User Submission")
    discovery_date = Column(Date, default=lambda: datetime.utcnow().date())
    created_at = Column(DateTime, default=datetime.utcnow)

    star = relationship("Star", back_populates="planets")
    observations = relationship(
        "Observation",
        back_populates="planet",
        order_by="Observation.observation_date.desc()",
    )

    __table_args__ = (
        UniqueConstraint('star_id', 'planet_name', name='_star_planet_name_uc'),
    )
