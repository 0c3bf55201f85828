"""Vendor layout templates for PHP discovery.

Each template describes where one distribution keeps its PHP binary,
php.ini and extension directory. Base paths sourced from environment
variables come first, followed by hard-coded conventional locations.
"""

from phpinictl.core.platform import OSFamily, PlatformContext
from phpinictl.models.installation import EnvironmentTemplate

# Priority bands (lower is preferred)
PRIORITY_PATH = 0
PRIORITY_REGISTRY = 10
PRIORITY_DEEP_SCAN = 90


def _bases(ctx: PlatformContext, env_var: str | None, *defaults: str) -> tuple[str, ...]:
    """Environment-sourced base first, then the hard-coded fallbacks."""
    candidates: list[str] = []
    if env_var:
        value = ctx.env(env_var)
        if value:
            candidates.append(value)
    candidates.extend(defaults)
    return tuple(dict.fromkeys(candidates))


def _windows_templates(ctx: PlatformContext) -> list[EnvironmentTemplate]:
    return [
        EnvironmentTemplate(
            name="Laragon",
            base_paths=_bases(ctx, "LARAGON_PATH", "C:/laragon", "D:/laragon", "E:/laragon"),
            ini_pattern=("bin", "php", "{version}", "php.ini"),
            ext_pattern=("bin", "php", "{version}", "ext"),
            exe_patterns=(("bin", "php", "{version}"),),
            version_pattern=("bin", "php", "*"),
            priority=20,
        ),
        EnvironmentTemplate(
            name="XAMPP",
            base_paths=_bases(ctx, "XAMPP_PATH", "C:/xampp", "D:/xampp", "E:/xampp"),
            ini_pattern=("php", "php.ini"),
            ext_pattern=("php", "ext"),
            exe_patterns=(("php",),),
            priority=30,
        ),
        EnvironmentTemplate(
            name="WAMP",
            base_paths=_bases(
                ctx, "WAMP_PATH", "C:/wamp64", "C:/wamp", "D:/wamp64", "D:/wamp"
            ),
            ini_pattern=("bin", "php", "{version}", "php.ini"),
            ext_pattern=("bin", "php", "{version}", "ext"),
            exe_patterns=(("bin", "php", "{version}"),),
            version_pattern=("bin", "php", "php*"),
            priority=30,
        ),
        EnvironmentTemplate(
            name="PVM",
            base_paths=_bases(ctx, "PVM_PATH", "C:/tools/php"),
            ini_pattern=("php", "{version}", "php.ini"),
            ext_pattern=("php", "{version}", "ext"),
            exe_patterns=(("php", "{version}"), ("sym",)),
            version_pattern=("php", "*"),
            priority=25,
            deep_scan_depth=3,
        ),
        EnvironmentTemplate(
            name="Custom",
            base_paths=_bases(
                ctx,
                "DEFAULT_PATH",
                "C:/php",
                "C:/Program Files/PHP",
                "C:/Program Files (x86)/PHP",
            ),
            ini_pattern=("php.ini",),
            ext_pattern=("ext",),
            priority=40,
            deep_scan_depth=2,
        ),
    ]


def _unix_templates(ctx: PlatformContext) -> list[EnvironmentTemplate]:
    templates = [
        EnvironmentTemplate(
            name="Homebrew",
            base_paths=_bases(
                ctx,
                "HOMEBREW_PREFIX",
                "/opt/homebrew",
                "/usr/local",
                "/home/linuxbrew/.linuxbrew",
            ),
            ini_pattern=("etc", "php", "{version}", "php.ini"),
            ext_pattern=(),
            exe_patterns=(("opt", "php@{version}", "bin"), ("opt", "php", "bin")),
            version_pattern=("etc", "php", "*"),
            priority=20,
        ),
        EnvironmentTemplate(
            name="Custom",
            base_paths=_bases(ctx, "DEFAULT_PATH", "/usr/local/php", "/opt/php"),
            ini_pattern=("lib", "php.ini"),
            ext_pattern=(),
            exe_patterns=(("bin",), ()),
            priority=40,
            deep_scan_depth=3,
        ),
    ]
    if ctx.os_family == OSFamily.LINUX:
        templates.insert(
            0,
            EnvironmentTemplate(
                name="APT",
                base_paths=("/etc/php",),
                ini_pattern=("{version}", "cli", "php.ini"),
                ext_pattern=(),
                exe_patterns=(("/usr/bin",),),
                exe_names=("php{version}",),
                version_pattern=("*",),
                priority=15,
            ),
        )
    return templates


def default_templates(ctx: PlatformContext) -> tuple[EnvironmentTemplate, ...]:
    """Build the ordered template list for a platform.

    Extra base paths listed in PHPINICTL_EXTRA_PATHS are probed as
    single-version installations after the vendor templates.

    Args:
        ctx: Platform description.

    Returns:
        Templates in probing order.
    """
    templates = _windows_templates(ctx) if ctx.is_windows else _unix_templates(ctx)

    extra = ctx.env_paths("PHPINICTL_EXTRA_PATHS")
    if extra:
        templates.append(
            EnvironmentTemplate(
                name="Extra",
                base_paths=tuple(extra),
                ini_pattern=("php.ini",),
                ext_pattern=("ext",),
                exe_patterns=((), ("bin",)),
                priority=45,
                deep_scan_depth=2,
            )
        )
    return tuple(templates)
