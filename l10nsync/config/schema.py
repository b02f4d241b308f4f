"""Configuration schema definitions using Pydantic for validation.

Every setting has a default matching the layout produced by Capacitor
(``npx cap add android|ios``), so an empty configuration is valid.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


class AndroidConfig(BaseModel):
    """Configuration for the Android resource update.

    Attributes:
        enabled: Whether the Android step runs at all.
        res_dir: Resource directory, relative to the project root.
        default_locale: Locale written to the unqualified ``values`` folder.
        language_mappings: Locale -> Android qualifiers it expands to.
        strings_file: File name inside each ``values*`` folder.
    """

    enabled: bool = True
    res_dir: str = "android/app/src/main/res"
    default_locale: str = "en"
    language_mappings: Dict[str, List[str]] = Field(
        default_factory=lambda: {
            "zh-Hans": ["zh-rCN"],
            "zh-Hant": ["zh-rHK", "zh-rTW", "zh-rMO"],
        }
    )
    strings_file: str = "strings.xml"

    model_config = {"extra": "forbid"}

    @field_validator("language_mappings")
    @classmethod
    def validate_mappings(cls, v: Dict[str, List[str]]) -> Dict[str, List[str]]:
        """Each mapped locale must expand to at least one qualifier."""
        for locale, qualifiers in v.items():
            if not qualifiers:
                raise ValueError(f"language_mappings[{locale!r}] must not be empty")
        return v


class IOSConfig(BaseModel):
    """Configuration for the iOS resource and Xcode project update.

    Attributes:
        enabled: Whether the iOS step runs at all.
        resource_dirs: Candidate directories holding ``Info.plist``, in order.
        project_name: Xcode project name (``<name>.xcodeproj``).
        strings_name: Localized strings file written to each ``.lproj``.
        baseline_regions: Regions always listed in ``knownRegions``.
        group_name: Navigator group that receives the variant group; the
            main group when unset.
        info_plist_mode: How development-region values reach ``Info.plist``.
        update_project: Whether the Xcode project manifest is synchronized.
    """

    enabled: bool = True
    resource_dirs: List[str] = Field(default_factory=lambda: ["ios/App/App", "ios/App"])
    project_name: str = "App"
    strings_name: str = "InfoPlist.strings"
    baseline_regions: List[str] = Field(default_factory=lambda: ["Base"])
    group_name: Optional[str] = None
    info_plist_mode: Literal["overwrite", "token", "keep"] = "overwrite"
    update_project: bool = True

    model_config = {"extra": "forbid"}

    @field_validator("resource_dirs")
    @classmethod
    def validate_resource_dirs(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("resource_dirs must contain at least one directory")
        return v

    @field_validator("strings_name")
    @classmethod
    def validate_strings_name(cls, v: str) -> str:
        if not v.endswith(".strings") or "/" in v:
            raise ValueError(f"strings_name must be a bare *.strings file name, got {v!r}")
        return v


class SyncConfig(BaseModel):
    """Top-level configuration.

    Attributes:
        localizations_dir: Directory of per-locale files, relative to the
            project root.
        android: Android settings.
        ios: iOS settings.
    """

    localizations_dir: str = "localizations"
    android: AndroidConfig = Field(default_factory=AndroidConfig)
    ios: IOSConfig = Field(default_factory=IOSConfig)

    model_config = {"extra": "forbid"}

    @classmethod
    def default(cls) -> "SyncConfig":
        return cls()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SyncConfig":
        """Create configuration from dictionary.

        Raises:
            ValidationError: If configuration is invalid.
        """
        return cls.model_validate(data)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()
