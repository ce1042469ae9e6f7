"""Campus engagement: clubs, events, teams, jobs and profiles."""
