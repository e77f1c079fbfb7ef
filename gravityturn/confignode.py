"""Reader and writer for the flat key/value node format used by history files.

The format is the one KSP uses for its ``.cfg`` files: a node is a name on
its own line followed by a braced block holding ``key = value`` lines and
child nodes. Values are kept as raw strings; interpreting them is up to the
caller.

Example:
    >>> from gravityturn.confignode import ConfigNode, dumps, parse
    >>>
    >>> root = ConfigNode("root")
    >>> item = root.add_node("item")
    >>> item.add_value("TurnAngle", "10")
    >>> parse(dumps(root)).get_node("item").get_value("TurnAngle")
    '10'
"""

from dataclasses import dataclass, field

from beartype import beartype


class ConfigNodeError(ValueError):
    """Raised when text cannot be parsed as a node tree."""


@beartype
@dataclass
class ConfigNode:
    """A named node holding ordered values and child nodes.

    Attributes:
        name: Node name (the root node's name is never written)
        values: Ordered (key, value) pairs; keys may repeat
        nodes: Child nodes in file order
    """
    name: str = "root"
    values: list[tuple[str, str]] = field(default_factory=list)
    nodes: list["ConfigNode"] = field(default_factory=list)

    def add_value(self, key: str, value: str) -> None:
        self.values.append((key, value))

    def add_node(self, name: str) -> "ConfigNode":
        node = ConfigNode(name)
        self.nodes.append(node)
        return node

    def get_value(self, key: str) -> str | None:
        """First value stored under ``key``, or None."""
        for k, v in self.values:
            if k == key:
                return v
        return None

    def get_node(self, name: str) -> "ConfigNode | None":
        """First child node called ``name``, or None."""
        for node in self.nodes:
            if node.name == name:
                return node
        return None

    def get_nodes(self, name: str) -> list["ConfigNode"]:
        return [node for node in self.nodes if node.name == name]


# =============================================================================
# Writing
# =============================================================================


def _write_node(node: ConfigNode, depth: int, lines: list[str]) -> None:
    indent = "\t" * depth
    for key, value in node.values:
        lines.append(f"{indent}{key} = {value}")
    for child in node.nodes:
        lines.append(f"{indent}{child.name}")
        lines.append(f"{indent}{{")
        _write_node(child, depth + 1, lines)
        lines.append(f"{indent}}}")


@beartype
def dumps(root: ConfigNode) -> str:
    """Render the contents of ``root`` (not its name) as text."""
    lines: list[str] = []
    _write_node(root, 0, lines)
    return "\n".join(lines) + "\n"


# =============================================================================
# Parsing
# =============================================================================


def _tokenize(text: str) -> list[tuple[int, str]]:
    """Split text into (line number, token) pairs.

    Braces become tokens of their own, comments and blank lines are dropped.
    """
    tokens = []
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.split("//", 1)[0]
        # Braces may share a line with a node name or with each other
        for part in line.replace("{", "\n{\n").replace("}", "\n}\n").split("\n"):
            part = part.strip()
            if part:
                tokens.append((lineno, part))
    return tokens


@beartype
def parse(text: str, name: str = "root") -> ConfigNode:
    """Parse text into a node tree.

    Args:
        text: File contents
        name: Name given to the returned root node

    Returns:
        Root node holding the top-level values and nodes

    Raises:
        ConfigNodeError: On unbalanced braces or a line that is neither
            a ``key = value`` pair, a node name, nor a brace
    """
    tokens = _tokenize(text.lstrip("\ufeff"))
    root = ConfigNode(name)
    stack = [root]
    i = 0
    while i < len(tokens):
        lineno, token = tokens[i]
        if token == "}":
            if len(stack) == 1:
                raise ConfigNodeError(f"Line {lineno}: unexpected '}}'")
            stack.pop()
            i += 1
        elif token == "{":
            raise ConfigNodeError(f"Line {lineno}: '{{' without a node name")
        elif "=" in token:
            key, value = token.split("=", 1)
            key = key.strip()
            if not key:
                raise ConfigNodeError(f"Line {lineno}: missing key before '='")
            stack[-1].add_value(key, value.strip())
            i += 1
        elif i + 1 < len(tokens) and tokens[i + 1][1] == "{":
            stack.append(stack[-1].add_node(token))
            i += 2
        else:
            raise ConfigNodeError(f"Line {lineno}: cannot parse {token!r}")
    if len(stack) != 1:
        raise ConfigNodeError(f"Unclosed node '{stack[-1].name}'")
    return root
