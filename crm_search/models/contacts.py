"""Contact models — Contacts, Tags, Interactions, Deals."""

import enum

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import relationship

from .base import Base, IntEnumType, UTCDateTime


class DealStage(enum.IntEnum):
    PROSPECT = 0
    QUALIFIED = 1
    PROPOSAL = 2
    NEGOTIATION = 3
    CLOSED_WON = 4
    CLOSED_LOST = 5


class InteractionType(enum.IntEnum):
    EMAIL = 0
    CALL = 1
    MEETING = 2
    DEMO = 3
    OTHER = 4


class Contact(Base):
    __tablename__ = "contacts"
    id = Column(Integer, primary_key=True)
    first_name = Column(String(100), nullable=False, default="")
    last_name = Column(String(100), nullable=False, default="")
    email = Column(String(255), nullable=False, default="")
    company = Column(String(255), nullable=False, default="")
    city = Column(String(255), nullable=False, default="")
    last_contact_date = Column(UTCDateTime, nullable=False)
    deal_stage = Column(IntEnumType(DealStage))
    base_potential_value = Column(Numeric(18, 2))

    contact_tags = relationship(
        "ContactTag", back_populates="contact", cascade="all, delete-orphan"
    )
    interactions = relationship(
        "Interaction", back_populates="contact", cascade="all, delete-orphan"
    )
    deals = relationship("Deal", back_populates="contact", cascade="all, delete-orphan")

    __table_args__ = (
        # Covers city / stage / recency filters; INCLUDE columns are PostgreSQL-only
        Index(
            "ix_contacts_city_stage_last_contact",
            "city",
            "deal_stage",
            "last_contact_date",
            postgresql_include=[
                "id",
                "first_name",
                "last_name",
                "email",
                "company",
                "base_potential_value",
            ],
        ),
        CheckConstraint(
            "base_potential_value IS NULL OR base_potential_value >= 0",
            name="ck_contacts_base_potential_nonneg",
        ),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def tag_names(self) -> list[str]:
        return [ct.tag.name for ct in self.contact_tags]


class Tag(Base):
    __tablename__ = "tags"
    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False, unique=True)

    contact_tags = relationship("ContactTag", back_populates="tag")


class ContactTag(Base):
    """Many-to-many junction between contacts and tags."""

    __tablename__ = "contact_tags"
    contact_id = Column(
        Integer, ForeignKey("contacts.id", ondelete="CASCADE"), primary_key=True
    )
    tag_id = Column(Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True)

    contact = relationship("Contact", back_populates="contact_tags")
    tag = relationship("Tag", back_populates="contact_tags")

    __table_args__ = (Index("ix_contact_tags_tag", "tag_id"),)


class Interaction(Base):
    __tablename__ = "interactions"
    id = Column(Integer, primary_key=True)
    contact_id = Column(
        Integer, ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False
    )
    type = Column(IntEnumType(InteractionType), nullable=False)
    date = Column(UTCDateTime, nullable=False)

    contact = relationship("Contact", back_populates="interactions")

    __table_args__ = (Index("ix_interactions_contact_type", "contact_id", "type"),)


class Deal(Base):
    __tablename__ = "deals"
    id = Column(Integer, primary_key=True)
    contact_id = Column(
        Integer, ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False
    )
    estimated_value = Column(Numeric(18, 2))

    contact = relationship("Contact", back_populates="deals")

    __table_args__ = (
        Index("ix_deals_contact_value", "contact_id", "estimated_value"),
        CheckConstraint(
            "estimated_value IS NULL OR estimated_value >= 0",
            name="ck_deals_estimated_value_nonneg",
        ),
    )
