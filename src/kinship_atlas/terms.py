"""Gendered kinship vocabulary."""

# role -> (male, female, unknown/other)
ROLE_TERMS: dict[str, tuple[str, str, str]] = {
    "parent": ("father", "mother", "parent"),
    "child": ("son", "daughter", "child"),
    "sibling": ("brother", "sister", "sibling"),
    "spouse": ("husband", "wife", "spouse"),
    "grandparent": ("grandfather", "grandmother", "grandparent"),
    "grandchild": ("grandson", "granddaughter", "grandchild"),
    "uncle_aunt": ("uncle", "aunt", "uncle/aunt"),
    "nephew_niece": ("nephew", "niece", "nephew/niece"),
    "cousin": ("cousin", "cousin", "cousin"),
    "parent_in_law": ("father-in-law", "mother-in-law", "parent-in-law"),
    "child_in_law": ("son-in-law", "daughter-in-law", "child-in-law"),
    "sibling_in_law": ("brother-in-law", "sister-in-law", "sibling-in-law"),
    "step_parent": ("stepfather", "stepmother", "step-parent"),
    "step_child": ("stepson", "stepdaughter", "stepchild"),
}

_ORDINAL_WORDS = [
    "zeroth",
    "first",
    "second",
    "third",
    "fourth",
    "fifth",
    "sixth",
    "seventh",
    "eighth",
    "ninth",
    "tenth",
]


def gendered_term(role: str, gender: str | None) -> str:
    male, female, neutral = ROLE_TERMS[role]
    if gender == "male":
        return male
    if gender == "female":
        return female
    return neutral


def ordinal(n: int) -> str:
    """1 -> '1st', 2 -> '2nd', 11 -> '11th', 23 -> '23rd'."""
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def ordinal_word(n: int) -> str:
    if 0 <= n < len(_ORDINAL_WORDS):
        return _ORDINAL_WORDS[n]
    return ordinal(n)


def removal_phrase(removal: int) -> str:
    if removal <= 0:
        return ""
    if removal == 1:
        return "once removed"
    if removal == 2:
        return "twice removed"
    return f"{removal} times removed"


def with_greats(term: str, greats: int) -> str:
    """Prefix `term` with `greats` generations: great-, then '2nd great-', ..."""
    if greats <= 0:
        return term
    if greats == 1:
        return f"great-{term}"
    return f"{ordinal(greats)} great-{term}"


def lineal_term(steps: int, gender: str | None, ascending: bool) -> str:
    """Ancestor (ascending) or descendant term for a straight line of `steps` generations."""
    if steps == 1:
        return gendered_term("parent" if ascending else "child", gender)
    base = gendered_term("grandparent" if ascending else "grandchild", gender)
    return with_greats(base, steps - 2)


def collateral_term(steps: int, gender: str | None, elder: bool) -> str:
    """Uncle/aunt (elder) or nephew/niece line, `steps` generations from the shared parent."""
    base = gendered_term("uncle_aunt" if elder else "nephew_niece", gender)
    return with_greats(base, steps - 2)


def cousin_term(degree: int, removal: int) -> str:
    term = f"{ordinal_word(degree)} cousin"
    phrase = removal_phrase(removal)
    return f"{term} {phrase}" if phrase else term
