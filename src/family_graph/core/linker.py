"""
Graph linking.

Populates each person's parents/children/spouses edges from family
records so that:
- every spouse link is mutual
- every parent->child link has a matching child->parent link
- no edge list holds the same id twice, however often linking runs
"""

from __future__ import annotations

import logging
from typing import Iterable

from family_graph.core.models import Family, Person, Sex, SpouseLink

logger = logging.getLogger(__name__)


def _append_unique(items: list[str], item: str) -> None:
    if item not in items:
        items.append(item)


def _add_spouse(person: Person, spouse_id: str, family: Family) -> None:
    for link in person.spouses:
        if link.spouse_id == spouse_id and link.family_id == family.id:
            return
    person.spouses.append(SpouseLink(
        spouse_id=spouse_id,
        family_id=family.id,
        marriage=family.marriage,
        divorce=family.divorce,
    ))


def reconcile_family_pointers(
    people: dict[str, Person],
    families: dict[str, Family],
) -> None:
    """
    Repair families from the individuals' side.

    A FAMC pointer adds the person to the family's children; a FAMS pointer
    fills an empty HUSB/WIFE slot (chosen by sex when known).
    """
    for person in people.values():
        for family_id in person.family_child_ids:
            family = families.get(family_id)
            if family is None:
                logger.debug("%s: FAMC %s not found", person.id, family_id)
                continue
            if person.id not in family.children_ids:
                logger.debug("%s: adding missing CHIL to %s", person.id, family_id)
                family.children_ids.append(person.id)

        for family_id in person.family_spouse_ids:
            family = families.get(family_id)
            if family is None:
                logger.debug("%s: FAMS %s not found", person.id, family_id)
                continue
            if person.id in (family.husband_id, family.wife_id):
                continue

            if person.sex == Sex.MALE and family.husband_id is None:
                family.husband_id = person.id
            elif person.sex == Sex.FEMALE and family.wife_id is None:
                family.wife_id = person.id
            elif person.sex == Sex.UNKNOWN and family.husband_id is None:
                family.husband_id = person.id
            elif person.sex == Sex.UNKNOWN and family.wife_id is None:
                family.wife_id = person.id
            else:
                continue
            logger.debug("%s: filled spouse slot of %s from FAMS", person.id, family_id)


def link_family(people: dict[str, Person], family: Family) -> None:
    """Link the spouses and children of one family into the people map."""
    husband = people.get(family.husband_id) if family.husband_id else None
    wife = people.get(family.wife_id) if family.wife_id else None

    if family.husband_id and husband is None:
        logger.debug("%s: husband %s not found", family.id, family.husband_id)
    if family.wife_id and wife is None:
        logger.debug("%s: wife %s not found", family.id, family.wife_id)

    if husband and wife:
        _add_spouse(husband, wife.id, family)
        _add_spouse(wife, husband.id, family)

    for child_id in family.children_ids:
        child = people.get(child_id)
        if child is None:
            logger.debug("%s: child %s not found", family.id, child_id)
            continue
        for parent in (husband, wife):
            if parent is None:
                continue
            _append_unique(child.parents, parent.id)
            _append_unique(parent.children, child.id)


def link_family_graph(people: Iterable[Person], families: Iterable[Family]) -> None:
    """
    Link every family into the people's edge lists, in place.

    Safe to call repeatedly on the same data.
    """
    people_by_id = {person.id: person for person in people}
    families_by_id = {family.id: family for family in families}

    reconcile_family_pointers(people_by_id, families_by_id)
    for family in families_by_id.values():
        link_family(people_by_id, family)
