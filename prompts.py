"""
Prompt bodies sent to Gemini. Formatting only — no logic lives here.
"""
from __future__ import annotations

import json
from typing import Any, Iterable

SKIN_ANALYSIS_PROMPT = """You are an expert dermatologist. Analyze these facial images VERY CAREFULLY and detect ALL visible skin conditions.

**CRITICAL INSTRUCTIONS:**
1. Look at EVERY visible area of the skin: forehead, cheeks, nose, chin, temples, jaw.
2. Detect EVERYTHING visible, even minor issues.
3. Provide accurate bounding boxes for EVERY condition you detect.

**Conditions to look for:**
- Acne, pustules, comedones, whiteheads, blackheads, pimples
- Redness, inflammation, irritation, rosacea
- Wrinkles, fine lines, crow's feet, forehead lines
- Dark circles, under-eye bags, puffiness
- Dark spots, hyperpigmentation, sun spots, melasma
- Texture issues, rough patches, bumps, enlarged pores
- Dryness, flakiness, dehydration
- Oiliness, shine, sebum buildup
- Scarring, post-acne marks
- Uneven skin tone

**EXCLUSIONS:**
- Normal facial hair, beard, mustache or stubble are NOT skin conditions,
  unless it is specifically folliculitis or ingrown hairs.

**For EACH condition:**
1. A descriptive name (e.g. "Acne Pustules", "Dark Spots on Cheeks")
2. Confidence 0-100
3. Location (Forehead, Left Cheek, Right Cheek, Nose, Chin, Under Eyes, Temple, Jaw, ...)
4. Bounding boxes around EVERY visible instance, normalized coordinates 0.0-1.0
   (x1, y1 = top-left corner; x2, y2 = bottom-right corner; imageId = index of the image)

Group similar conditions into categories (e.g. "Acne & Blemishes", "Signs of Aging",
"Pigmentation Issues", "Texture & Pores").

Provide output in JSON format. Every condition MUST have at least one bounding box."""

HAIR_ANALYSIS_PROMPT = """You are an expert AI trichologist. Analyze images of a person's hair and scalp in detail.

**Step 1: Image validity check**
If the images do NOT clearly show a human head, hair or scalp (objects, flowers, blurry,
unrecognizable), return a JSON object with "error": "irrelevant_image" and a short "message".
Otherwise proceed to Step 2.

**Step 2: Detailed analysis**
Reference conditions (use these terms where applicable):
1. Hair loss: Androgenetic Alopecia (receding hairline, vertex thinning, widening part),
   Telogen Effluvium, Alopecia Areata, Traction Alopecia, Cicatricial Alopecia.
2. Scalp: Seborrheic Dermatitis, Pityriasis Capitis (Dandruff), Folliculitis, Psoriasis.
3. Hair shaft: Breakage / Trichorrhexis Nodosa, Split Ends, Frizz / Dryness.

Group findings dynamically (e.g. "Hair Loss Patterns", "Scalp Health", "Hair Quality") and
name gender-specific patterns explicitly (Receding Hairline vs Widening Part).

For each condition give name, confidence 0-100, location (Left Temple, Crown, Nape, Part Line, ...)
and bounding boxes in normalized coordinates 0.0-1.0. Any detected hair loss MUST have a box
around the whole affected area.

Provide the output strictly in JSON format according to the provided schema."""

SKIN_ROUTINE_PROMPT = """Create a highly effective, personalized skincare routine (Morning & Evening) based on the user's analysis and goals.

**INPUT DATA:**
- **USER ANALYSIS:** {analysis}
- **USER GOALS:** {goals}

**PRODUCT CATALOG:**
{catalog}

**MEDICAL LOGIC:**
1. AM routine: gentle cleansing + antioxidants + hydration + sun protection.
2. PM routine: deep cleansing + treatments (actives) + repair/moisturize.
3. Match the single best product for each step using only the catalog.

**CONSTRAINTS:**
- Return the exact 'productId' (the "id" in the catalog).
- No hallucinations. If no product fits, skip that step.
- Return JSON format only."""

HAIR_ROUTINE_PROMPT = """Create a clinical-grade hair care routine based on the provided analysis.

**INPUT DATA:**
- **ANALYSIS:** {analysis}
- **PROFILE:** {profile}
- **GOALS:** {goals}

**PRODUCT CATALOG:** {catalog}

**MEDICAL LOGIC:**
1. Identify issues (e.g. pattern baldness, dandruff, damage).
2. Match the most potent product for each step using only the catalog.

**CONSTRAINTS:**
- Return the exact 'productId' (the "id" in the catalog).
- No hallucinations. If no product fits, skip that step.
- Return JSON format only."""

DOCTOR_REPORT_PROMPT = """You are a senior dermatologist/trichologist. Based on this {kind} analysis: {analysis},
generate a professional medical report summary.
Include:
1. Clinical Observations
2. Potential Root Causes
3. Professional Recommendations (Lifestyle & Care)
4. Disclaimer

Keep it professional, empathetic, and clear. Format in Markdown."""

CHAT_PROMPT = """You are an AI Skin & Hair Assistant for Dermatics India.
Context: {context}
User Question: {query}

Provide a concise, helpful, and scientifically accurate answer based on the user's analysis and products.
If you don't know, suggest consulting a doctor."""


def _dump(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def skin_routine(analysis: Any, goals: Iterable[str], catalog: list[dict]) -> str:
    return SKIN_ROUTINE_PROMPT.format(
        analysis=_dump(analysis), goals=", ".join(goals), catalog=_dump(catalog),
    )


def hair_routine(analysis: Any, profile: dict, goals: Iterable[str], catalog: list[dict]) -> str:
    return HAIR_ROUTINE_PROMPT.format(
        analysis=_dump(analysis), profile=_dump(profile),
        goals=", ".join(goals), catalog=_dump(catalog),
    )


def doctor_report(analysis: Any, kind: str) -> str:
    return DOCTOR_REPORT_PROMPT.format(kind=kind, analysis=_dump(analysis))


def chat(query: str, context: dict) -> str:
    return CHAT_PROMPT.format(context=_dump(context), query=query)
