from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

# CSS Color Module Level 4 named colors.
NAMED_COLORS = frozenset(
    """
    aliceblue antiquewhite aqua aquamarine azure beige bisque black blanchedalmond blue
    blueviolet brown burlywood cadetblue chartreuse chocolate coral cornflowerblue cornsilk
    crimson cyan darkblue darkcyan darkgoldenrod darkgray darkgreen darkgrey darkkhaki
    darkmagenta darkolivegreen darkorange darkorchid darkred darksalmon darkseagreen
    darkslateblue darkslategray darkslategrey darkturquoise darkviolet deeppink deepskyblue
    dimgray dimgrey dodgerblue firebrick floralwhite forestgreen fuchsia gainsboro ghostwhite
    gold goldenrod gray green greenyellow grey honeydew hotpink indianred indigo ivory khaki
    lavender lavenderblush lawngreen lemonchiffon lightblue lightcoral lightcyan
    lightgoldenrodyellow lightgray lightgreen lightgrey lightpink lightsalmon lightseagreen
    lightskyblue lightslategray lightslategrey lightsteelblue lightyellow lime limegreen linen
    magenta maroon mediumaquamarine mediumblue mediumorchid mediumpurple mediumseagreen
    mediumslateblue mediumspringgreen mediumturquoise mediumvioletred midnightblue mintcream
    mistyrose moccasin navajowhite navy oldlace olive olivedrab orange orangered orchid
    palegoldenrod palegreen paleturquoise palevioletred papayawhip peachpuff peru pink plum
    powderblue purple rebeccapurple red rosybrown royalblue saddlebrown salmon sandybrown
    seagreen seashell sienna silver skyblue slateblue slategray slategrey snow springgreen
    steelblue tan teal thistle tomato turquoise violet wheat white whitesmoke yellow
    yellowgreen
    """.split()
)

_HEX_RE = re.compile(r"^#([0-9a-f]{3,4}|[0-9a-f]{6}|[0-9a-f]{8})$")
_FUNC_RE = re.compile(r"^(rgba?|hsla?)\(\s*([^()]*)\)$")
_NUM = r"[-+]?(?:\d+\.?\d*|\.\d+)(?:e[-+]?\d+)?"
_ARG_RE = re.compile(rf"^({_NUM})(%|deg)?$")


@dataclass(frozen=True)
class Color:
    type: Literal["rgb", "hsl", "named", "current", "none", "transparent"]
    value: str
    alpha: float = 1.0


def _parse_alpha(text: str) -> float:
    m = _ARG_RE.match(text)
    if not m:
        raise ValueError(text)
    number = float(m.group(1))
    if m.group(2) == "%":
        number /= 100
    return min(max(number, 0.0), 1.0)


def _parse_function(name: str, args_text: str) -> Color | None:
    if "/" in args_text:
        main, _, alpha_text = args_text.partition("/")
        args = main.replace(",", " ").split()
        alpha_args = [alpha_text.strip()]
    else:
        args = args_text.replace(",", " ").split()
        alpha_args = args[3:]
        args = args[:3]
    if len(args) != 3 or len(alpha_args) > 1:
        return None
    if not all(_ARG_RE.match(a) for a in args):
        return None
    try:
        alpha = _parse_alpha(alpha_args[0]) if alpha_args else 1.0
    except ValueError:
        return None
    kind: Literal["rgb", "hsl"] = "rgb" if name.startswith("rgb") else "hsl"
    return Color(type=kind, value=f"{name}({args_text.strip()})", alpha=alpha)


def parse_color(value: str | None) -> Color | None:
    """
    Parse a CSS color. Returns None for anything that is not a plain color,
    such as "url(#gradient)", "inherit" or garbage.
    """
    text = (value or "").strip().lower()
    if not text:
        return None
    if text == "none":
        return Color(type="none", value="none", alpha=0.0)
    if text == "transparent":
        return Color(type="transparent", value="transparent", alpha=0.0)
    if text == "currentcolor":
        return Color(type="current", value="currentColor")
    if text in NAMED_COLORS:
        return Color(type="named", value=text)

    m = _HEX_RE.match(text)
    if m:
        digits = m.group(1)
        alpha = 1.0
        if len(digits) == 4:
            alpha = int(digits[3] * 2, 16) / 255
        elif len(digits) == 8:
            alpha = int(digits[6:], 16) / 255
        return Color(type="rgb", value=text, alpha=alpha)

    m = _FUNC_RE.match(text)
    if m:
        return _parse_function(m.group(1), m.group(2))
    return None


def is_empty_color(color: Color) -> bool:
    """True for colors that paint nothing: none, transparent, or fully transparent values."""
    return color.type in ("none", "transparent") or color.alpha == 0
