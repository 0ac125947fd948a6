"""Split TypeQL seed files into individually executable statements."""


def split_statements(content: str) -> list[str]:
    """Split a TypeQL file into individual statements.

    Handles standalone ``insert`` statements and ``match ... insert``
    compound statements. Comment lines between statements are dropped, as
    are blank lines.

    Example::

        insert $p isa person, has name "Alice";

        match
          $a isa person, has name "Alice";
          $b isa person, has name "Bob";
        insert
          (friend: $a, friend: $b) isa friendship;

    yields two statements, the second spanning the match and insert lines.

    Args:
        content: Raw TypeQL file content.

    Returns:
        Statements in source order, each stripped of surrounding whitespace.
    """
    statements: list[str] = []
    current: list[str] = []
    in_match_insert = False

    def flush() -> None:
        statement = "\n".join(current).strip()
        if statement and not statement.startswith("#"):
            statements.append(statement)
        current.clear()

    for line in content.split("\n"):
        trimmed = line.strip()

        if trimmed.startswith("#") and not current:
            continue

        if trimmed.startswith("insert ") and not in_match_insert:
            flush()
        elif trimmed.startswith("match"):
            flush()
            in_match_insert = True

        if trimmed:
            current.append(line)

        # A match-insert ends at the first ';' once its insert clause is seen
        if in_match_insert and trimmed.endswith(";") and "insert" in "\n".join(current):
            in_match_insert = False

    flush()
    return statements
