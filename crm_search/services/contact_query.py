"""Query building for contact search — filters and sort pushed to the database.

The min deal value filter is not here: the score is derived in Python, so
ContactSearcher evaluates it against the rows these filters leave.
"""

from sqlalchemy.orm import Query, Session, selectinload

from ..models import Contact, ContactTag, Tag
from ..schemas.contacts import ContactSearchRequest

SORT_FULL_NAME = "fullname"
SORT_COMPANY = "company"
SORT_EMAIL = "email"

# Same concatenation as Contact.full_name / ContactDto.full_name
full_name_expr = Contact.first_name + " " + Contact.last_name

_SORT_COLUMNS = {
    SORT_FULL_NAME: full_name_expr,
    SORT_COMPANY: Contact.company,
    SORT_EMAIL: Contact.email,
}


def apply_filters(query: Query, request: ContactSearchRequest) -> Query:
    if request.city:
        query = query.filter(Contact.city == request.city)

    tag_names = request.tag_names()
    if tag_names:
        query = query.filter(
            Contact.contact_tags.any(ContactTag.tag.has(Tag.name.in_(tag_names)))
        )

    if request.last_contact_before is not None:
        query = query.filter(Contact.last_contact_date < request.last_contact_before)

    if request.deal_stage is not None:
        query = query.filter(Contact.deal_stage == request.deal_stage)

    return query


def sort_expression(sort_by: str | None):
    """Column for a sort key; anything unrecognized sorts by last contact date."""
    return _SORT_COLUMNS.get((sort_by or "").lower(), Contact.last_contact_date)


def apply_sorting(query: Query, request: ContactSearchRequest) -> Query:
    column = sort_expression(request.sort_by)
    ordered = column.desc() if request.sort_descending else column.asc()
    # id breaks ties so page boundaries are stable
    return query.order_by(ordered, Contact.id.asc())


def with_related(query: Query) -> Query:
    """Eager-load tags, interactions and deals in one round trip per relation."""
    return query.options(
        selectinload(Contact.contact_tags).selectinload(ContactTag.tag),
        selectinload(Contact.interactions),
        selectinload(Contact.deals),
    )


def build_contact_query(db: Session, request: ContactSearchRequest) -> Query:
    return apply_filters(db.query(Contact), request)
