from aidetect.db.session import engine
from aidetect.db.base import Base


def init_db():
    from aidetect import models  # noqa

    Base.metadata.create_all(bind=engine)
