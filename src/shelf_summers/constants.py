import typing

MONTH_NAMES: typing.List[str] = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]
DAYS_PER_MONTH_LEAP: typing.List[int] = [
    31, 29, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31
]
LEAP_DAY_KEY: str = "Feb-29"

# Last month of an austral summer; later months roll into the next summer
# (April 1991 -- March 1992 is summer 1992).
DEFAULT_SPLIT_MONTH: int = 3

DEFAULT_RUNNING_WINDOW: int = 5
DEFAULT_CORRELATION_WINDOW_YEARS: int = 11
DEFAULT_DECILE_BOUNDS: typing.Tuple[float, float] = (0.1, 0.9)
DEFAULT_EXTRA_DECIMALS: int = 1
DEFAULT_ALPHA: float = 0.05

# Missing-value sentinels used in the published index files
PSL_MISSING_VALUE: float = -99.99
CPC_MISSING_VALUE: float = -999.0

SECONDS_PER_DAY: float = 86400.0
CELSIUS_OFFSET: float = 273.15

# (name, display title, initials), ordered west to east from the Weddell Sea
SHELVES: typing.List[typing.Tuple[str, str, str]] = [
    ("Brunt_Stancomb", "Brunt", "BS"),
    ("Riiser-Larsen", "R.-Larsen", "RL"),
    ("Ekstrom", "Ekstrom", "Ek"),
    ("Atka", "Atka", "At"),
    ("Jelbart", "Jelbart", "Jb"),
    ("Fimbul", "Fimbul", "Fm"),
    ("Vigrid", "Vigrid", "Vg"),
    ("Nivl", "Nivl", "Nv"),
    ("Lazarev", "Lazarev", "Lz"),
    ("Borchgrevink", "B'grevik", "Bg"),
    ("Baudouin", "Baudouin", "Ba"),
    ("Prince_Harald", "Pr. Harald", "PH"),
    ("Amery", "Amery", "Am"),
    ("West", "West", "Ws"),
    ("Shackleton", "Shackleton", "Sh"),
    ("Tracy_Tremenchus", "Tracy T.", "TT"),
    ("Conger_Glenzer", "Conger", "CG"),
    ("Totten", "Totten", "To"),
    ("Moscow_University", "Moscow U.", "MU"),
    ("Holmes", "Holmes", "Hm"),
    ("Mertz", "Mertz", "Mz"),
    ("Ninnis", "Ninnis", "Nn"),
    ("Cook", "Cook", "Ck"),
    ("Rennick", "Rennick", "Rn"),
    ("Mariner", "Mariner", "Ma"),
    ("Nansen", "Nansen", "Na"),
    ("Drygalski", "Drygalski", "Dr"),
]

REGIONS: typing.Dict[str, typing.Tuple[str, ...]] = {
    "Weddell": ("Brunt_Stancomb", "Riiser-Larsen"),
    "DML": (
        "Ekstrom", "Atka", "Jelbart", "Fimbul", "Vigrid", "Nivl",
        "Lazarev", "Borchgrevink", "Baudouin", "Prince_Harald",
    ),
    "Amery": ("Amery",),
    "Wilkes": (
        "West", "Shackleton", "Tracy_Tremenchus", "Conger_Glenzer",
        "Totten", "Moscow_University", "Holmes",
    ),
    "Oates": ("Mertz", "Ninnis", "Cook", "Rennick"),
    "Ross": ("Mariner", "Nansen", "Drygalski"),
}
