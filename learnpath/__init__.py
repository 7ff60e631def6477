"""LearnPath: course structure, enrollment and progress engine."""
