"""Loading people snapshots from GEDCOM files and JSON records."""

import json
import logging
from pathlib import Path

from ged4py import GedcomReader

from kinship_atlas.dates import parse_date_string
from kinship_atlas.models import CHILD, PARENT, SPOUSE, Person, Relation

logger = logging.getLogger(__name__)

_SEX_TO_GENDER = {"M": "male", "F": "female"}


def clean_xref(xref_id: str) -> str:
    """'@I_347421849@' -> 'I_347421849'."""
    return xref_id.strip("@")


def extract_name_parts(indi) -> tuple[str, str]:
    """Extract (first name, last name) from an individual record."""
    name_rec = indi.sub_tag("NAME")
    if name_rec is None or name_rec.value is None:
        return ("Unknown", "")

    name_value = name_rec.value

    # ged4py returns NAME as tuple: (given, surname, suffix)
    if isinstance(name_value, tuple):
        given, surname, suffix = name_value
        first = given or "Unknown"
        last = " ".join(p for p in [surname, suffix] if p)
        return (first, last)

    # Fallback: string format "Given /Surname/"
    givn = name_rec.sub_tag("GIVN")
    surn = name_rec.sub_tag("SURN")
    if givn or surn:
        return (givn.value if givn else "", surn.value if surn else "")

    parts = str(name_value).split("/")
    first = parts[0].strip() or "Unknown"
    last = parts[1].strip() if len(parts) > 1 else ""
    return (first, last)


def extract_event_date(indi, tag: str) -> str | None:
    """Date string of an event tag (BIRT, DEAT, etc.), if any."""
    event = indi.sub_tag(tag)
    if event is None:
        return None
    date_rec = event.sub_tag("DATE")
    # ged4py may return DateValue objects
    if date_rec and date_rec.value:
        return str(date_rec.value)
    return None


def extract_gender(indi) -> str:
    sex_rec = indi.sub_tag("SEX")
    return _SEX_TO_GENDER.get(sex_rec.value if sex_rec else None, "other")


class _RelationBuilder:
    """Adds relations to both people of a pair, skipping repeats."""

    def __init__(self, people: dict[str, Person]):
        self.people = people
        self.count = 0

    def add(self, owner_id: str, rel_type: str, other_id: str) -> None:
        owner = self.people.get(owner_id)
        if owner is None or other_id not in self.people:
            logger.debug("Skipping %s relation %s -> %s: unknown person", rel_type, owner_id, other_id)
            return
        if any(rel.type == rel_type and rel.person_id == other_id for rel in owner.relations):
            return
        self.count += 1
        owner.relations.append(Relation(id=f"r{self.count}", type=rel_type, person_id=other_id))


def normalize_data(reader: GedcomReader) -> list[Person]:
    """
    Extract people and their relations from parsed GEDCOM data.

    Family records become spouse relations between husband and wife and
    parent/child relations between each of them and every child, recorded on
    both sides. Non-standard (underscore) tags are ignored.
    """
    people: dict[str, Person] = {}

    # First pass: individuals
    for rec in reader.records0("INDI"):
        if rec.xref_id is None:
            continue
        first_name, last_name = extract_name_parts(rec)
        person_id = clean_xref(rec.xref_id)
        people[person_id] = Person(
            id=person_id,
            first_name=first_name,
            last_name=last_name,
            gender=extract_gender(rec),
            birth_date=parse_date_string(extract_event_date(rec, "BIRT")),
            death_date=parse_date_string(extract_event_date(rec, "DEAT")),
        )

    # Second pass: families
    builder = _RelationBuilder(people)
    for rec in reader.records0("FAM"):
        if rec.xref_id is None:
            continue

        parent_ids = [
            clean_xref(sub.xref_id)
            for sub in (rec.sub_tag("HUSB"), rec.sub_tag("WIFE"))
            if sub is not None and sub.xref_id
        ]
        child_ids = [clean_xref(child.xref_id) for child in rec.sub_tags("CHIL") if child.xref_id]

        if len(parent_ids) == 2:
            husb_id, wife_id = parent_ids
            builder.add(husb_id, SPOUSE, wife_id)
            builder.add(wife_id, SPOUSE, husb_id)

        for child_id in child_ids:
            for parent_id in parent_ids:
                builder.add(child_id, PARENT, parent_id)
                builder.add(parent_id, CHILD, child_id)

    logger.info("Loaded %d people and %d relation records from GEDCOM", len(people), builder.count)
    return list(people.values())


def load_gedcom(filepath: Path | str) -> list[Person]:
    """Parse a GEDCOM file into a people snapshot."""
    reader = GedcomReader(str(filepath))
    return normalize_data(reader)


def _field(record: dict, *names, default=None):
    for name in names:
        if name in record and record[name] is not None:
            return record[name]
    return default


def people_from_records(records: list[dict]) -> list[Person]:
    """
    Build people from JSON-like records.

    Keys may be camelCase (``firstName``, ``birthDate``, ``personId``) or
    snake_case. Relation ids default to ``{person id}-{index}``.
    """
    people = []
    for record in records:
        person_id = str(record["id"])
        relations = [
            Relation(
                id=str(_field(rel, "id", default=f"{person_id}-{index}")),
                type=rel["type"],
                person_id=str(_field(rel, "personId", "person_id")),
            )
            for index, rel in enumerate(record.get("relations", []))
        ]
        people.append(
            Person(
                id=person_id,
                first_name=_field(record, "firstName", "first_name", default=""),
                last_name=_field(record, "lastName", "last_name", default=""),
                gender=_field(record, "gender", default="other"),
                birth_date=_field(record, "birthDate", "birth_date"),
                death_date=_field(record, "deathDate", "death_date"),
                relations=relations,
            )
        )
    return people


def load_people_json(path: Path | str) -> list[Person]:
    """Read a JSON file holding a list of person records (or ``{"people": [...]}``)."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("people", [])
    return people_from_records(data)


def load_people(path: Path | str) -> list[Person]:
    """Load a snapshot from a ``.ged`` or ``.json`` file."""
    if Path(path).suffix.lower() == ".ged":
        return load_gedcom(path)
    return load_people_json(path)
