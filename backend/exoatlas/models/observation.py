from sqlalchemy import Column, Integer, String, Float, Date, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from exoatlas.db.base_class import Base
import enum


class HabitabilityClass(str, enum.Enum):
    INSIDE_HZ = "Inside HZ"
    TOO_HOT = "Too Hot"
    TOO_COLD = "Too Cold"


class Observation(Base):
    """One habitability evaluation per planet per calendar day."""
    __tablename__ = "observations"

    observation_id = Column(Integer, primary_key=True, index=True)
    planet_id = Column(Integer, ForeignKey("planets.planet_id"), nullable=False, index=True)
    observation_date = Column(Date, nullable=False, index=True)
    orbital_distance_au = Column(Float, nullable=False)
    habitability_classification = Column(String(16), nullable=False)
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=True)
    angular_separation_as = Column(Float, nullable=True)

    planet = relationship("Planet", back_populates="observations")

    __table_args__ = (
        UniqueConstraint('planet_id', 'observation_date', name='_planet_observation_date_uc'),
    )
