"""A small report model rendered to text as the very last step."""
from dataclasses import dataclass, field
from typing import List, Union

SEPARATOR = "━" * 38
INDENT = "   "


@dataclass(frozen=True)
class Field:
    label: str
    value: str


@dataclass(frozen=True)
class Text:
    text: str
    indent: bool = True


@dataclass(frozen=True)
class Item:
    """A drill-down entry: a headline plus an optional detail line beneath it."""

    text: str
    detail: str = ""


@dataclass(frozen=True)
class Blank:
    pass


Line = Union[Field, Text, Item, Blank]


@dataclass
class Block:
    heading: str = ""
    lines: List[Line] = field(default_factory=list)

    def add(self, *lines: Line) -> "Block":
        self.lines.extend(lines)
        return self

    def fields(self, *pairs) -> "Block":
        self.lines.extend(Field(label, value) for label, value in pairs)
        return self


@dataclass
class Section:
    title: str = ""
    blocks: List[Block] = field(default_factory=list)
    separated: bool = True

    def block(self, heading: str = "") -> Block:
        block = Block(heading)
        self.blocks.append(block)
        return block


@dataclass
class Report:
    title: str
    context: List[str] = field(default_factory=list)
    sections: List[Section] = field(default_factory=list)

    def section(self, title: str = "", separated: bool = True) -> Section:
        section = Section(title, separated=separated)
        self.sections.append(section)
        return section

    def render(self) -> str:
        out = [self.title, *self.context]
        for section in self.sections:
            out.append("")
            if section.separated:
                out.append(SEPARATOR)
            if section.title:
                out.append(section.title)
            for block in section.blocks:
                if block.heading:
                    out.append("")
                out.extend(_render_block(block))
        return "\n".join(out).rstrip() + "\n"


def _render_block(block: Block) -> List[str]:
    out = []
    if block.heading:
        out.append(block.heading)
    for line in block.lines:
        if isinstance(line, Field):
            out.append(f"{INDENT}• {line.label}: {line.value}")
        elif isinstance(line, Item):
            out.append(f"{INDENT}- {line.text}")
            if line.detail:
                out.append(f"{INDENT}  {line.detail}")
        elif isinstance(line, Text):
            out.append(f"{INDENT}{line.text}" if line.indent else line.text)
        elif isinstance(line, Blank):
            out.append("")
    return out
