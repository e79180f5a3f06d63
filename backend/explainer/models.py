from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum, func
from .enums import Rating, Subject
Base = declarative_base()


def _enum_column_type(enum_cls, length: int) -> Enum:
    # stored as the enum values; any other string is rejected on write
    return Enum(
        enum_cls,
        values_callable=lambda members: [m.value for m in members],
        native_enum=False,
        create_constraint=True,
        validate_strings=True,
        length=length,
        name=f"{enum_cls.__name__.lower()}_enum",
    )


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, autoincrement=True)
    google_id = Column(String, nullable=False, unique=True, index=True)
    email = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=False)
    avatar = Column(String, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    problems = relationship("Problem", back_populates="user", passive_deletes=True)


class Problem(Base):
    __tablename__ = "problems"
    id = Column(Integer, primary_key=True, autoincrement=True)
    image_data = Column(Text, nullable=False)
    image_name = Column(String, nullable=True)
    mime_type = Column(String, nullable=False)
    question = Column(Text, nullable=True)
    ai_response = Column(Text, nullable=False)
    rating = Column(_enum_column_type(Rating, 16), nullable=True)
    subject = Column(_enum_column_type(Subject, 64), nullable=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime, server_default=func.now(), index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="problems")
