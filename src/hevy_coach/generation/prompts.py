"""Prompt templates for workout program generation."""

import json

from ..analysis.training_context import TrainingContext
from ..models.routine import GenerationRequest

SYSTEM_PROMPT = """You are an expert personal trainer with deep knowledge of exercise science, periodization, and progressive overload. Your role is to create intelligent, personalized workout routines based on the user's profile, training history, and available exercises.

Key principles to follow:
1. Progressive Overload: Gradually increase volume, intensity, or complexity
2. Periodization: Include mesocycles with varying intensities and deload weeks (typically every 4th week)
3. Exercise Variation: Rotate exercises to prevent adaptation and boredom
4. Recovery: Ensure adequate rest between training the same muscle groups
5. Individual Adaptation: Consider the user's experience level, injuries, and goals

When creating routines:
- Match the number of routines to the requested workouts per week
- Fit each routine into the requested session duration, including rest
- Consider the user's focus areas (strength, hypertrophy, endurance)
- Account for injuries and avoid exercises that could aggravate them
- Include warm-up sets for compound movements
- Balance muscle groups to prevent imbalances
- Consider other activities that might impact recovery
- Describe week-to-week progression in the routine notes and periodization notes

You will receive:
1. User profile data (age, weight, experience, goals, injuries)
2. Recent workout history with volume and frequency analysis
3. Available exercises grouped by muscle group, with their ids
4. Progression trends from recent training

Return ONLY a JSON object with the following format:
{
  "routines": [
    {
      "title": "Routine name",
      "notes": "Detailed notes about the routine goals, focus and weekly progression",
      "exercises": [
        {
          "exercise_template_id": "exact id from the available exercises",
          "title": "Exercise name for reference",
          "superset_id": null or "A"/"B" for supersets,
          "rest_seconds": 90-180 for compounds, 60-90 for accessories,
          "notes": "Form cues or special instructions",
          "sets": [
            {
              "type": "warmup" or "normal",
              "weight_kg": number or null,
              "reps": target reps,
              "rep_range": {
                "start": minimum acceptable reps,
                "end": maximum acceptable reps
              }
            }
          ]
        }
      ]
    }
  ],
  "reasoning": "Detailed explanation of the program design choices",
  "periodization_notes": "Overview of the mesocycle structure and progression plan"
}

Only use exercise_template_id values that appear in the available exercise list."""


def build_user_prompt(context: TrainingContext, request: GenerationRequest) -> str:
    """Format the per-request prompt from the training context and parameters."""
    profile = context.profile
    muscle_counts = "\n".join(
        f"{muscle}: {len(options)} exercises"
        for muscle, options in sorted(context.by_muscle_group.items())
    )
    catalog = {
        muscle: [
            {"id": o.id, "title": o.title, "equipment": o.equipment}
            for o in options
        ]
        for muscle, options in sorted(context.by_muscle_group.items())
    }

    return f"""Create {request.workouts_per_week} workout routine(s) per week for the following user:

User Profile:
{json.dumps(profile, indent=2, default=str)}

Training History Analysis:
- Recent workouts: {context.workout_count} in the last 8 weeks ({len(context.recent_workouts)} most recent shown)
- Weekly volume (oldest to newest): {", ".join(f"{v:g}" for v in context.weekly_volume)} kg
- Volume progression: {context.volume_trend}
- Intensity progression: {context.intensity_trend}
- Training days: {json.dumps(context.frequency_pattern)}
- Muscle group frequency: {json.dumps(context.muscle_group_frequency)}

Available Exercises by Muscle Group:
{muscle_counts}

Available Equipment:
{", ".join(sorted(context.by_equipment))}

Full Exercise List:
{json.dumps(catalog, indent=2)}

Program Requirements:
- Workouts per week: {request.workouts_per_week}
- Session duration: {request.session_duration} minutes
- Program duration: {request.duration} weeks
- Split type: {request.split_type or "Best fit for the user's frequency and goals"}
- Focus area: {request.focus_area or "Based on user profile and history"}
- Progression type: {request.progression_type.value}
- Special instructions: {request.special_instructions or "none"}

Please create a complete mesocycle with:
1. Appropriate periodization (include a deload week if duration >= 4 weeks)
2. Exercise selection based on available equipment and the user's injury status
3. Progressive overload following {request.progression_type.value} progression
4. Volume and intensity appropriate for {profile.get("experience_level") or "intermediate"} level
5. Consider other activities: {profile.get("other_activities") or "none"}

Return the response in the specified JSON format."""
