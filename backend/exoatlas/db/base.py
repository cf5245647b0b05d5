# Import Base class and all models so create_all can detect them
from exoatlas.db.base_class import Base  # noqa
from exoatlas.models.user import User  # noqa
from exoatlas.models.star import Star  # noqa
from exoatlas.models.planet import Planet  # noqa
from exoatlas.models.observation import Observation  # noqa
