import pytest

from kinship_atlas.models import INVERSE_RELATION, PARENT, SIBLING, SPOUSE, Person, Relation


class FamilyBuilder:
    """Small helper to put together people snapshots for tests."""

    def __init__(self):
        self.people: dict[str, Person] = {}
        self._count = 0

    def add(self, person_id, first=None, last="Doe", gender="other", birth=None, death=None):
        self.people[person_id] = Person(
            id=person_id,
            first_name=first or person_id.title(),
            last_name=last,
            gender=gender,
            birth_date=birth,
            death_date=death,
        )
        return self

    def relate(self, a, rel_type, b, both=True):
        """Record that `b` is `a`'s `rel_type` (and the inverse on `b` unless both=False)."""
        self._count += 1
        self.people[a].relations.append(Relation(f"r{self._count}", rel_type, b))
        if both:
            self._count += 1
            self.people[b].relations.append(Relation(f"r{self._count}", INVERSE_RELATION[rel_type], a))
        return self

    def parent(self, child, *parents, both=True):
        for parent_id in parents:
            self.relate(child, PARENT, parent_id, both=both)
        return self

    def marry(self, a, b, both=True):
        return self.relate(a, SPOUSE, b, both=both)

    def siblings(self, a, b, both=True):
        return self.relate(a, SIBLING, b, both=both)

    def build(self) -> list[Person]:
        return list(self.people.values())


@pytest.fixture
def builder():
    return FamilyBuilder()


@pytest.fixture
def nuclear_family(builder):
    """Dad and Mom, married, with two children (no sibling records)."""
    return (
        builder.add("dad", "John", gender="male", birth="1950-03-01")
        .add("mom", "Mary", gender="female", birth="1952-07-12")
        .add("kid1", "Tom", gender="male", birth="1975-01-01")
        .add("kid2", "Sue", gender="female", birth="1978-05-05")
        .marry("dad", "mom")
        .parent("kid1", "dad", "mom")
        .parent("kid2", "dad", "mom")
        .build()
    )


@pytest.fixture
def extended_family(builder):
    """
    Three generations below a grandparent couple::

        gp = gm
          |
        ann(=carl)   ben
          |           |
         cat         dan
          |
         eve
    """
    return (
        builder.add("gp", "George", gender="male", birth="1900-01-01")
        .add("gm", "Grace", gender="female", birth="1902-01-01")
        .add("ann", "Ann", gender="female", birth="1925-01-01")
        .add("ben", "Ben", gender="male", birth="1928-01-01")
        .add("carl", "Carl", last="Roe", gender="male", birth="1926-01-01")
        .add("cat", "Cat", last="Roe", gender="female", birth="1950-01-01")
        .add("dan", "Dan", gender="male", birth="1955-01-01")
        .add("eve", "Eve", last="Roe", gender="female", birth="1980-01-01")
        .marry("gp", "gm")
        .parent("ann", "gp", "gm")
        .parent("ben", "gp", "gm")
        .siblings("ann", "ben")
        .marry("ann", "carl")
        .parent("cat", "ann", "carl")
        .parent("dan", "ben")
        .parent("eve", "cat")
        .build()
    )


@pytest.fixture
def deep_chain(builder):
    """p0 -> p1 -> ... -> p13, one child per generation, listed youngest first."""
    for i in reversed(range(14)):
        builder.add(f"p{i}")
    for i in range(13):
        builder.parent(f"p{i + 1}", f"p{i}")
    return builder.build()
