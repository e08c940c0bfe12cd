from sqlalchemy.orm import declarative_base
from sqlalchemy.ext.declarative import declared_attr


class CustomBase:
    # Generate __tablename__ automatically based on class name
    @declared_attr
    def __tablename__(cls):
        return cls.__name__.lower()


Base = declarative_base(cls=CustomBase)
