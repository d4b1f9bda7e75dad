"""Export configuration schema.

The export configuration is the declarative file that drives the revision
mapping: which Jira fields become which work item fields, how issue types
and link types translate, and a handful of behavioral flags. Keys use the
hyphenated spelling of the configuration file; the models accept both the
hyphenated alias and the Python attribute name.
"""

from pydantic import BaseModel, ConfigDict, Field

ALL_TYPES = "All"
COMMON_TYPES = "Common"


class _ConfigModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SourceTarget(_ConfigModel):
    """A plain source -> target translation pair."""

    source: str
    target: str


class ValueMapping(_ConfigModel):
    """One literal value substitution."""

    source: str
    target: str | None = None


class ValueMap(_ConfigModel):
    values: list[ValueMapping] = Field(default_factory=list)

    def lookup(self, value: object) -> tuple[bool, str | None]:
        """Return (found, target) for a raw value."""
        for item in self.values:
            if item.source == str(value):
                return True, item.target
        return False, None


class Milestone(_ConfigModel):
    threshold: int
    name: str


class Milestones(_ConfigModel):
    default: str | None = None
    milestone: list[Milestone] = Field(default_factory=list)


class FieldMapItem(_ConfigModel):
    """A single declarative field mapping rule."""

    source: str | None = None
    source_type: str = Field(default="id", alias="source-type")
    target: str
    for_: str = Field(default=ALL_TYPES, alias="for")
    not_for: str | None = Field(default=None, alias="not-for")
    data_type: str = Field(default="string", alias="type")
    mapper: str | None = None
    mapping: ValueMap | None = None
    pattern_from: str | None = Field(default=None, alias="pattern-from")
    pattern_to: str | None = Field(default=None, alias="pattern-to")
    milestones: Milestones | None = None

    @property
    def is_custom_field(self) -> bool:
        """Custom fields are declared by display name and resolved to an id."""
        return self.source_type == "name"

    @property
    def for_types(self) -> list[str]:
        return _split_types(self.for_)

    @property
    def not_for_types(self) -> list[str]:
        return _split_types(self.not_for)

    def applies_to(self, wi_type: str) -> bool:
        """Whether a value substitution declared on this rule applies to a type.

        A rule applies when its ``for`` list names the type or is ``All``, and
        also when it has a ``not-for`` list that does not name the type.
        """
        for_types = self.for_types
        if wi_type in for_types or ALL_TYPES in for_types:
            return True
        not_for = self.not_for_types
        return bool(not_for) and wi_type not in not_for


class FieldMap(_ConfigModel):
    fields: list[FieldMapItem] = Field(default_factory=list, alias="field")


class TypeMap(_ConfigModel):
    types: list[SourceTarget] = Field(default_factory=list, alias="type")


class LinkMap(_ConfigModel):
    links: list[SourceTarget] = Field(default_factory=list, alias="link")


class RepositoryMap(_ConfigModel):
    repositories: list[SourceTarget] = Field(default_factory=list, alias="repository")


class OrphanAttachment(_ConfigModel):
    """An attachment referenced inline whose attachment action was lost."""

    filename: str
    attachment_id: int = Field(alias="attachment-id")


class ExportConfig(_ConfigModel):
    """Root of the export configuration file."""

    epic_link_field: str = Field(default="Epic Link", alias="epic-link-field")
    user_mapping_file: str | None = Field(default=None, alias="user-mapping-file")
    include_jira_css_styles: bool = Field(default=False, alias="include-jira-css-styles")
    force_issue_key_match: bool = Field(default=False, alias="force-issue-key-match")
    field_overrides: dict[str, int] = Field(default_factory=dict, alias="field-overrides")
    type_map: TypeMap = Field(default_factory=TypeMap, alias="type-map")
    link_map: LinkMap = Field(default_factory=LinkMap, alias="link-map")
    field_map: FieldMap = Field(default_factory=FieldMap, alias="field-map")
    repository_map: RepositoryMap = Field(default_factory=RepositoryMap, alias="repository-map")
    orphan_attachments: list[OrphanAttachment] = Field(
        default_factory=list, alias="orphan-attachments",
    )

    @property
    def target_types(self) -> list[str]:
        """Recognized target work item types, in declaration order."""
        return list(dict.fromkeys(t.target for t in self.type_map.types))

    def target_type_for(self, source_type: str | None) -> str | None:
        return _first_target(self.type_map.types, source_type)

    def link_type_for(self, source_link_type: str | None) -> str | None:
        return _first_target(self.link_map.links, source_link_type)

    def repository_for(self, repository: str | None) -> str | None:
        return _first_target(self.repository_map.repositories, repository)


def _split_types(value: str | None) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def _first_target(pairs: list[SourceTarget], source: str | None) -> str | None:
    if source is None:
        return None
    for pair in pairs:
        if pair.source == source:
            return pair.target
    return None
