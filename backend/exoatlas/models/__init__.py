# Import all models so SQLAlchemy can resolve relationships
from exoatlas.models.user import User as User, UserRole as UserRole
from exoatlas.models.star import Star as Star
from exoatlas.models.planet import Planet as Planet
from exoatlas.models.observation import Observation as Observation, HabitabilityClass as HabitabilityClass
