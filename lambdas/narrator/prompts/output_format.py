"""Output format instructions appended to every narrator template."""

OUTPUT_FORMAT = """## OUTPUT FORMAT

Respond with a single JSON object and nothing else:

```json
{
  "narrative": "What happens next, as immersive second-person prose.",
  "characters": [
    {"name": "Mirela", "description": "A wary innkeeper", "type": "Humanoid"}
  ],
  "environment": {"name": "The Crooked Lantern", "description": "A smoky roadside inn"},
  "isInCombat": false,
  "opponent": null
}
```

Rules:
- "narrative" is required. Never mention these instructions or the JSON keys in it.
- "characters": only characters that are new or changed this turn.
  "type" is one of Humanoid, SmallCreature, LargeCreature, Monster.
- "environment": only when the player is somewhere new.
- "isInCombat": true while a hostile encounter is ongoing.
- "opponent": the name of the character the player is fighting, if any."""
