from modpack_release.models.configuration import (
    BuildConfiguration,
    Configuration,
    DiscoveryConfiguration,
    GitConfiguration,
    PackwizConfiguration,
    UpstreamConfiguration,
)
from modpack_release.models.content import (
    ContentDefinition,
    ContentManifest,
    ContentReference,
    InstallationOutcome,
    InstallMethod,
    Variant,
)
from modpack_release.models.release import (
    TAG_DELIMITER,
    BuildOutcome,
    ReleaseStatus,
    ReleaseTag,
    RunResult,
)

__all__ = [
    'TAG_DELIMITER',
    'BuildConfiguration',
    'BuildOutcome',
    'Configuration',
    'ContentDefinition',
    'ContentManifest',
    'ContentReference',
    'DiscoveryConfiguration',
    'GitConfiguration',
    'InstallMethod',
    'InstallationOutcome',
    'PackwizConfiguration',
    'ReleaseStatus',
    'ReleaseTag',
    'RunResult',
    'UpstreamConfiguration',
    'Variant',
]
