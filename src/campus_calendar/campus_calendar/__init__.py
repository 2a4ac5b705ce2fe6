"""Campus academic calendar engine (schedule patterns, holidays, academic events)."""
