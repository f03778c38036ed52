"""Bundle Iconify icon sets, filtered subsets and SVG directories into one CSS file."""

from .css import build_css, get_icons_css, icon_to_svg, svg_to_url, write_output
from .errors import BundleError, EmptyIconFilter, IconSourceNotFound, InvalidIconSet, SVGCleanupError
from .iconset import IconSet, get_icons, import_directory, load_icon_set
from .log import setup_logging
from .models import BundleConfig, CSSOptions, JSONSource, SVGSource, load_config
from .names import IconName, organize_icons_list, string_to_icon
from .pipeline import BundleResult, build_bundle
from .resolve import DirectoryResolver, NodeModulesResolver, resolve_sources

__all__ = [
    "BundleConfig",
    "BundleError",
    "BundleResult",
    "CSSOptions",
    "DirectoryResolver",
    "EmptyIconFilter",
    "IconName",
    "IconSet",
    "IconSourceNotFound",
    "InvalidIconSet",
    "JSONSource",
    "NodeModulesResolver",
    "SVGCleanupError",
    "SVGSource",
    "build_bundle",
    "build_css",
    "get_icons",
    "get_icons_css",
    "icon_to_svg",
    "import_directory",
    "load_config",
    "load_icon_set",
    "organize_icons_list",
    "resolve_sources",
    "setup_logging",
    "string_to_icon",
    "svg_to_url",
    "write_output",
]
