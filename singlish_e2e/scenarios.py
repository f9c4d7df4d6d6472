"""Scenario tables for the Singlish to Sinhala transliteration suites.

Every suite is a frozen snapshot of what the hosted page rendered when the
cases were recorded.  When the page changed its output for an input, the
suite was re-recorded as a new revision instead of editing the old one, so
``Negative-Functional`` r1 and r2 disagree on ``paan3k`` on purpose.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple


class Mode(Enum):
    """How input text is delivered to the page."""

    SEQUENTIAL = "sequential"  # one key at a time, exercises the debounce path
    BULK = "bulk"  # single fill, exercises the one-shot conversion path


class Assertion(Enum):
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"


class Kind(Enum):
    TRANSLITERATE = "transliterate"
    CLEAR = "clear"
    RAPID_RETYPE = "rapid_retype"


@dataclass(frozen=True)
class Scenario:
    """One input/expected-output case.

    ``primer`` is the text typed first by ``CLEAR`` and ``RAPID_RETYPE``
    cases.  ``forbidden_output`` is checked on top of ``assertion``.
    """

    id: str
    input_text: str
    expected_output: str
    mode: Mode = Mode.BULK
    assertion: Assertion = Assertion.EQUALS
    kind: Kind = Kind.TRANSLITERATE
    primer: Optional[str] = None
    forbidden_output: Optional[str] = None
    title: str = ""
    tags: Tuple[str, ...] = ()

    def __post_init__(self):
        if not self.id or not self.id.strip():
            raise ValueError("Scenario.id cannot be empty.")
        if self.kind is not Kind.TRANSLITERATE and not self.primer:
            raise ValueError(
                f"Scenario '{self.id}' is a {self.kind.value} case and needs a primer input."
            )

    @property
    def label(self) -> str:
        return f"{self.id}: {self.title}" if self.title else self.id


@dataclass(frozen=True)
class Suite:
    name: str
    revision: str
    scenarios: Tuple[Scenario, ...]
    strict: bool = False
    settle_timeout_ms: Optional[int] = None

    def __post_init__(self):
        seen = set()
        for scenario in self.scenarios:
            if scenario.id in seen:
                raise ValueError(
                    f"Duplicate scenario id '{scenario.id}' in suite {self.key}."
                )
            seen.add(scenario.id)

    @property
    def key(self) -> str:
        return f"{self.name}@{self.revision}"

    def get(self, scenario_id: str) -> Scenario:
        for scenario in self.scenarios:
            if scenario.id == scenario_id:
                return scenario
        raise KeyError(f"No scenario '{scenario_id}' in suite {self.key}")

    def with_tag(self, tag: str) -> "Suite":
        return replace(self, scenarios=tuple(s for s in self.scenarios if tag in s.tags))

    def __len__(self):
        return len(self.scenarios)

    def __iter__(self):
        return iter(self.scenarios)


def revise(
    suite: Suite,
    revision: str,
    changes: Optional[Dict[str, dict]] = None,
    add: Iterable[Scenario] = (),
) -> Suite:
    """Derive a new snapshot of ``suite``.

    ``changes`` maps scenario ids to field overrides; ``add`` is appended
    after the existing scenarios.  ``suite`` itself is not modified.
    """
    changes = dict(changes or {})
    unknown = set(changes) - {s.id for s in suite.scenarios}
    if unknown:
        raise KeyError(f"Cannot revise {suite.key}: unknown scenario ids {sorted(unknown)}")

    scenarios = tuple(
        replace(s, **changes[s.id]) if s.id in changes else s for s in suite.scenarios
    )
    return replace(suite, revision=revision, scenarios=scenarios + tuple(add))


def _bulk(scenario_id, title, input_text, expected_output):
    return Scenario(
        id=scenario_id,
        input_text=input_text,
        expected_output=expected_output,
        mode=Mode.BULK,
        title=title,
        tags=("sanity",),
    )


def _typed(scenario_id, title, input_text, expected_output):
    return Scenario(
        id=scenario_id,
        input_text=input_text,
        expected_output=expected_output,
        mode=Mode.SEQUENTIAL,
        title=title,
    )


POSITIVE = Suite(
    name="Positive",
    revision="r1",
    strict=True,
    settle_timeout_ms=30000,
    scenarios=(
        _bulk("Pos_Fun_01", "Imperative command", "roogiyaata vahaama oksijan dhenna.", "රෝගියාට වහාම ඔක්සිජන් දෙන්න."),
        _bulk("Pos_Fun_02", "Polite Request (Formal)", "karuNaakara obagee ayadhumpatha heta dhinayata pera evanna.", "කරුණාකර ඔබගේ අයදුම්පත හෙට දිනයට පෙර එවන්න."),
        _bulk("Pos_Fun_03", "Complex Sentence (Time)", "oyaa enakam mama geet eka gaava innavaa.", "ඔයා එනකම් මම ගේට් එක ගාව ඉන්නවා."),
        _bulk("Pos_Fun_04", "Multi-word expression emphasis", "himiita himiita vaeda tika karamu.", "හිමීට හිමීට වැඩ ටික කරමු."),
        _bulk("Pos_Fun_05", "English Abbreviations & Numbers", "magee ID number eka 19951234V vee.", "මගේ ID number එක 19951234V වේ."),
        _bulk("Pos_Fun_06", "Currency and Price", "meekata USD 50 saha Rs. 2000 k yanavaa.", "මේකට USD 50 සහ Rs. 2000 ක් යනවා."),
        _bulk("Pos_Fun_07", "Slang/Colloquial (Friends)", "adoo machan, shape ekee yamu.", "අඩෝ මචන්, shape එකේ යමු."),
        _bulk("Pos_Fun_08", "Joined words", "matanidhimathayi", "මටනිදිමතයි"),
        _bulk("Pos_Fun_09", "Negation", "mata eeka epaa.", "මට ඒක එපා."),
        _bulk("Pos_Fun_10", "Plural Subject", "ballo buranava.", "බල්ලො බුරනව."),
        _bulk("Pos_Fun_11", "Mixed Language", "oyaa Google Drive eken doc eka download karanna.", "ඔයා Google Drive එකෙන් doc එක download කරන්න."),
        _bulk(
            "Pos_Fun_12",
            "Paragraph/Long Input",
            "lQQkaavee sundhara thaen balanna api giya sathiyee tour ekak giyaa. siigiriya saha dhaBAulla balalaa api godak sathutu vunaa. ee photos api Facebook ekata upload kaLaa. yaaluvo godak likes dhaalaa thibunaa.",
            "ලංකාවේ සුන්දර තැන් බලන්න අපි ගිය සතියේ tour එකක් ගියා. සීගිරිය සහ දඹෞල්ල බලලා අපි ගොඩක් සතුටු වුනා. ඒ photos අපි Facebook එකට upload කළා. යාලුවො ගොඩක් likes දාලා තිබුනා.",
        ),
        _bulk("Pos_Fun_13", "Place Name (English)", "api Kandy valata yanavaa.", "අපි Kandy වලට යනවා."),
        _bulk("Pos_Fun_14", "Punctuation heavy input", "ehema needha?", "එහෙම නේද?"),
        _bulk("Pos_Fun_15", "Future Plan with English Date", "api December 25 venidhaata trip ekak yanavaa.", "අපි December 25 වෙනිදාට trip එකක් යනවා."),
        _bulk("Pos_Fun_16", "Pronoun Variation", "eyaalaa api ekka ekathu vunaa.", "එයාලා අපි එක්ක එකතු වුනා."),
        _bulk("Pos_Fun_17", "Measurement Units", "siini 500g ganna.", "සීනි 500g ගන්න."),
        _bulk("Pos_Fun_18", "Technical Instruction", "Router eka restart karanna.", "Router එක restart කරන්න."),
        _bulk("Pos_Fun_19", "Slang/Idiom", "elakiri machan.", "එලකිරි මචන්."),
        _bulk("Pos_Fun_20", "Abbreviation (Tech)", "mata OTP eka aavaa.", "මට OTP එක ආවා."),
        _bulk("Pos_Fun_21", "Complex Vowel Sounds", "maathRUU", "මාතෲ"),
        _bulk("Pos_Fun_22", "Address Format", "No 12, malvaththa Road, Colombo 7.", "No 12, මල්වත්ත Road, Colombo 7."),
        _bulk("Pos_Fun_23", "Collocation", "boru kiyanna epaa.", "බොරු කියන්න එපා."),
        _bulk("Pos_Fun_24", "Emotional Exclamation", "Shaa! maara lassanayi nee.", "ෂා! මාර ලස්සනයි නේ."),
        _bulk("Pos_Fun_25", "Punctuation (Exclamation)", "hari Shook!", "හරි ෂෝක්!"),
        Scenario(
            id="Pos_UI_01",
            title="Clear input clears output",
            kind=Kind.CLEAR,
            primer="mama gedhara yanavaa.",
            input_text="",
            expected_output="",
            tags=("sanity",),
        ),
    ),
)

NEGATIVE_FUNCTIONAL = Suite(
    name="Negative-Functional",
    revision="r1",
    settle_timeout_ms=20000,
    scenarios=(
        _typed("Neg_Fun_01", "Joined words without spaces", "mamagedharainnee", "මම ගෙදර ඉන්නේ"),
        _typed("Neg_Fun_02", "Extra spaces between words", "api    heta    yanavaa", "අපි හෙට යනවා"),
        _typed("Neg_Fun_03", "Verb spelling typo", "mama gedhara yannava", "මම ගෙදර යනවා"),
        _typed("Neg_Fun_04", "Informal broken grammar", "oyaa enne nadda", "ඔයා එන්නේ නැද්ද"),
        _typed("Neg_Fun_05", "Slang with spelling errors", "adoo machn ela wedaa", "අඩෝ මචන් එල වැඩ"),
        _typed("Neg_Fun_06", "Capital and lowercase mix", "Mama Gedhara Yanavaa", "මම ගෙදර යනවා"),
        _typed("Neg_Fun_07", "Missing Space (Number/Text)", "paan3k", "පාන් 3ක්"),
        _typed("Neg_Fun_08", "Dual condition sentence", "mata headache ekai fever ekai dekama thiyenavaa", "මට headache එකයි fever එකයි දෙකම තියෙනවා"),
        _typed("Neg_Fun_09", "English Sentence (Blind Transliteration)", "The server is down.", "The server is down."),
        _typed("Neg_Fun_10", "Negation statement", "eyaa project eka hariyata karala nae kiyalaa kiyannavaa", "එයා project එක හරියට කරලා නෑ කියලා කියනවා"),
        _typed("Neg_Fun_11", "Repeated emphasis words", "apihetaheta yamu yamu", "අපි හෙට හෙට යමු යමු"),
        _typed("Neg_Fun_12", "Brand + joined word", "mama GoogleDrive eke file upload karalaa thiyenavaa", "මම Google Drive එකේ file upload කරලා තියෙනවා"),
    ),
)

# Re-recorded after the page started keeping digits attached to the word
NEGATIVE_FUNCTIONAL_R2 = revise(
    NEGATIVE_FUNCTIONAL,
    "r2",
    changes={"Neg_Fun_07": {"expected_output": "පාන්3ක්"}},
    add=(_typed("Neg_Fun_13", "HTML-like markup", "<b>bold</b>", "<b>බොල්ඩ්</b>"),),
)

NEGATIVE_UI = Suite(
    name="Negative-UI",
    revision="r1",
    settle_timeout_ms=20000,
    scenarios=(
        Scenario(
            id="Neg_UI_01",
            title="Rapid type + clear should not keep stale output",
            kind=Kind.RAPID_RETYPE,
            primer="mama gedhara yanavaa.",
            input_text="api heta yanavaa.",
            expected_output="අපි හෙට යනවා",
            forbidden_output="මම ගෙදර යනවා.",
        ),
    ),
)

_SUITES: List[Suite] = []


def register(suite: Suite) -> Suite:
    if any(s.key == suite.key for s in _SUITES):
        raise ValueError(f"Suite {suite.key} is already registered")
    _SUITES.append(suite)
    return suite


for _suite in (POSITIVE, NEGATIVE_FUNCTIONAL, NEGATIVE_FUNCTIONAL_R2, NEGATIVE_UI):
    register(_suite)


def list_suites() -> List[Suite]:
    return list(_SUITES)


def latest_suites() -> List[Suite]:
    """Latest revision of every suite, in first-registration order."""
    latest: Dict[str, Suite] = {}
    for suite in _SUITES:
        latest[suite.name] = suite
    return list(latest.values())


def get_suite(name: str, revision: Optional[str] = None) -> Suite:
    candidates = [s for s in _SUITES if s.name == name]
    if not candidates:
        known = sorted({s.name for s in _SUITES})
        raise KeyError(f"Unknown suite '{name}'. Known suites: {', '.join(known)}")
    if revision is None:
        return candidates[-1]
    for suite in candidates:
        if suite.revision == revision:
            return suite
    known = [s.revision for s in candidates]
    raise KeyError(f"Suite '{name}' has no revision '{revision}'. Known revisions: {', '.join(known)}")
