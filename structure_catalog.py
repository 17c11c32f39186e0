"""
Narrative structure templates for script generation.
Each template's guide is injected verbatim into the script-generation prompt.

Adding a structure = one StructureId member + one STRUCTURE_GUIDES entry.
"""
from dataclasses import dataclass
from enum import Enum


class StructureId(str, Enum):
    IN_MEDIAS_RES = "in-medias-res"
    PROBLEM_SOLUTION = "problem-solution"
    HEROS_JOURNEY = "heros-journey"
    SAVE_THE_CAT = "save-the-cat"
    THREE_ACT = "three-act"


# No template: keep the reference script's own structure
ORIGINAL_STRUCTURE = "original"


@dataclass(frozen=True)
class StructureTemplate:
    name: str
    summary: str
    guide: str


STRUCTURE_GUIDES: dict[StructureId, StructureTemplate] = {
    StructureId.IN_MEDIAS_RES: StructureTemplate(
        name="In Medias Res",
        summary="Open on the most gripping moment, then rewind and explain how we got there.",
        guide="""IN MEDIAS RES:
1. COLD OPEN - drop the viewer into the most intense or surprising moment of the story, without context
2. REWIND - "But to understand how we got here, we need to go back..." - return to the beginning
3. BUILD-UP - lay out the events, choices and stakes that led to the opening moment
4. RETURN - arrive back at the opening moment, now with full context so it lands harder
5. RESOLUTION - show what happened next and what it means
6. TAKEAWAY - close with the lesson or question the viewer should leave with""",
    ),
    StructureId.PROBLEM_SOLUTION: StructureTemplate(
        name="Problem / Solution Curve",
        summary="Agitate a problem the viewer recognises, then walk them up the curve to the fix.",
        guide="""PROBLEM / SOLUTION CURVE:
1. HOOK - name a painful, specific problem the viewer already has
2. AGITATE - show why it is worse than they think (costs, hidden consequences, common mistakes)
3. TURNING POINT - reveal that there is a better way and why most people miss it
4. SOLUTION - explain the solution step by step, with concrete examples
5. PROOF - evidence, results or a short case that shows the solution working
6. CALL TO ACTION - tell the viewer exactly what to do next""",
    ),
    StructureId.HEROS_JOURNEY: StructureTemplate(
        name="Hero's Journey",
        summary="A protagonist leaves the ordinary world, is tested, and returns changed.",
        guide="""HERO'S JOURNEY:
1. ORDINARY WORLD - introduce the protagonist and their everyday situation
2. CALL TO ADVENTURE - a challenge or opportunity disrupts the ordinary world
3. REFUSAL AND MENTOR - doubt or fear, then guidance that gives them the push
4. TESTS, ALLIES AND ENEMIES - escalating trials that reveal character
5. ORDEAL - the darkest moment, where everything is at risk
6. REWARD - what the protagonist gains by surviving the ordeal
7. RETURN WITH THE ELIXIR - how they come back changed and what the viewer can take from it""",
    ),
    StructureId.SAVE_THE_CAT: StructureTemplate(
        name="Save the Cat",
        summary="Blake Snyder's beat sheet: compressed screenplay beats from opening image to final image.",
        guide="""SAVE THE CAT BEAT SHEET:
1. OPENING IMAGE - a snapshot of the 'before' state
2. THEME STATED - someone hints at the lesson the story will prove
3. SET-UP AND CATALYST - the world, the flaw, then the event that changes everything
4. DEBATE AND BREAK INTO TWO - hesitation, then a decisive step into a new situation
5. FUN AND GAMES - the promise of the premise; the most entertaining material
6. MIDPOINT - a false victory or false defeat that raises the stakes
7. BAD GUYS CLOSE IN AND ALL IS LOST - pressure mounts until everything collapses
8. DARK NIGHT OF THE SOUL AND BREAK INTO THREE - the realisation that unlocks the answer
9. FINALE AND FINAL IMAGE - the lesson applied, and a mirror of the opening image showing change""",
    ),
    StructureId.THREE_ACT: StructureTemplate(
        name="Three-Act Structure",
        summary="Set-up, confrontation, resolution with two clear turning points.",
        guide="""THREE-ACT STRUCTURE:
1. ACT ONE: SET-UP - introduce the subject, the stakes and the central question
2. FIRST TURNING POINT - an event that commits the story to its main conflict
3. ACT TWO: CONFRONTATION - rising complications, each bigger than the last
4. SECOND TURNING POINT - the crisis that forces a final decision
5. ACT THREE: RESOLUTION - the climax and its consequences
6. CLOSING - answer the central question and leave the viewer with one clear idea""",
    ),
}

_missing = [s.value for s in StructureId if s not in STRUCTURE_GUIDES]
if _missing:
    raise RuntimeError(f"Structure templates missing a guide: {_missing}")

STRUCTURE_IDS = [s.value for s in StructureId]


def is_valid_structure(structure_id: str) -> bool:
    """True for every catalog identifier and for 'original'."""
    return structure_id == ORIGINAL_STRUCTURE or structure_id in STRUCTURE_IDS


def get_template(structure_id: str) -> StructureTemplate:
    """Look up a catalog template. 'original' has no template and raises ValueError."""
    try:
        return STRUCTURE_GUIDES[StructureId(structure_id)]
    except ValueError:
        raise ValueError(
            f"Unknown structure '{structure_id}'. Must be one of: {STRUCTURE_IDS}"
        )


def guide_for(structure_id: str) -> str:
    """Return the prompt guide text for a catalog structure."""
    return get_template(structure_id).guide


def resolve_guide(structure_id: str, structure_summary: str) -> str:
    """
    Guide text to inject into script generation.

    Catalog structures use their template guide; 'original' uses the reference's
    own analysed structure so the new script keeps the same stage ordering.
    """
    if structure_id == ORIGINAL_STRUCTURE:
        return (
            "ORIGINAL STRUCTURE - follow the same stages, in the same order, as the reference script.\n"
            f"Analysed structure of the reference:\n{structure_summary.strip() or '(not available - infer it from the reference script)'}"
        )
    return guide_for(structure_id)


def get_structure_display_name(structure_id: str) -> str:
    if structure_id == ORIGINAL_STRUCTURE:
        return "Original Structure"
    return get_template(structure_id).name


def get_structure_options() -> list[tuple[str, str]]:
    """(label, id) pairs for a selection widget, 'original' first."""
    options = [("Original Structure - keep the reference's own flow", ORIGINAL_STRUCTURE)]
    for structure_id in StructureId:
        template = STRUCTURE_GUIDES[structure_id]
        options.append((f"{template.name} - {template.summary}", structure_id.value))
    return options
