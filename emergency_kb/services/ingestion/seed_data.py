"""Built-in fallback knowledge.

When no configured source yields a single entry, ingestion loads these
critical-care and field procedures instead, so a fresh install always has
something to answer with.  Embeddings are computed at load time like any
other candidate.
"""

from __future__ import annotations

from emergency_kb.models.knowledge import Category, KnowledgeEntry, Priority

SEED_SOURCE_NAME = "built-in seed set"


def _entry(
    category: Category,
    title: str,
    text: str,
    keywords: str,
    source: str,
    priority: Priority,
) -> KnowledgeEntry:
    return KnowledgeEntry(
        title=title,
        text=text,
        category=category.value,
        priority=int(priority),
        keywords=keywords,
        source=source,
    )


def default_seed_entries() -> list[KnowledgeEntry]:
    """Return fresh, unembedded copies of the built-in entries."""
    return [
        _entry(
            Category.MEDICAL,
            "Cardiac Arrest Response",
            "1. Check responsiveness - tap shoulders and shout. 2. Call for help immediately. "
            "3. Check pulse for no more than 10 seconds. 4. If no pulse, begin CPR: "
            "30 chest compressions (rate 100-120/min, depth 2+ inches) followed by 2 rescue "
            "breaths. 5. Continue cycles until help arrives or AED available. 6. Use AED if "
            "available - follow voice prompts.",
            keywords="cardiac arrest CPR chest compressions rescue breathing AED",
            source="American Heart Association Guidelines",
            priority=Priority.CRITICAL,
        ),
        _entry(
            Category.MEDICAL,
            "Severe Bleeding Control",
            "1. Ensure scene safety. 2. Apply direct pressure to wound with clean cloth or "
            "bandage. 3. Elevate injured area above heart level if possible. 4. If bleeding "
            "continues, apply additional layers without removing first bandage. 5. For severe "
            "arterial bleeding, consider tourniquet application 2-3 inches above wound. "
            "6. Monitor for shock symptoms.",
            keywords="bleeding hemorrhage tourniquet direct pressure shock",
            source="Red Cross First Aid Manual",
            priority=Priority.CRITICAL,
        ),
        _entry(
            Category.MEDICAL,
            "Airway Obstruction (Choking)",
            "For conscious adult: 1. Ask 'Are you choking?' 2. If unable to speak/cough, "
            "perform 5 back blows between shoulder blades. 3. If unsuccessful, perform 5 "
            "abdominal thrusts (Heimlich maneuver). 4. Alternate back blows and abdominal "
            "thrusts until object dislodged. For unconscious: Begin CPR, check mouth before "
            "rescue breaths.",
            keywords="choking airway obstruction Heimlich maneuver back blows abdominal thrusts",
            source="American Heart Association",
            priority=Priority.CRITICAL,
        ),
        _entry(
            Category.STRUCTURAL,
            "Building Collapse Assessment",
            "1. Do not enter damaged structures. 2. Look for: cracks in walls/foundation, "
            "sagging floors/roofs, tilting walls, separated joints. 3. Listen for creaking or "
            "settling sounds. 4. Check for gas leaks (smell of gas). 5. Turn off utilities if "
            "safe to do so. 6. Establish safety perimeter. 7. Mark building as unsafe if "
            "structural damage present.",
            keywords="building collapse structural damage safety assessment utilities gas leak",
            source="FEMA Structural Assessment Guidelines",
            priority=Priority.HIGH,
        ),
        _entry(
            Category.COMMUNICATION,
            "Emergency Communication Protocols",
            "1. Establish command post with reliable communication. 2. Use clear, concise "
            "language. 3. Report: What happened, When, Where, Who is involved, What help is "
            "needed. 4. Maintain communication log. 5. Use standardized codes if applicable. "
            "6. Ensure backup communication methods available (satellite phone, radio, etc.).",
            keywords="communication protocols radio emergency codes command post",
            source="Emergency Management Institute",
            priority=Priority.MEDIUM,
        ),
    ]
