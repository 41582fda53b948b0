RELEASE_NOTES_SYSTEM = """You will receive a git pull request description and diff.
Generate two types of release notes:

1. Developer note (developerNote): A concise technical note focusing on _what_ changed and _why_.
(e.g., "Refactored useFetchDiffs hook to use `useSWR` for improved caching and reduced re-renders.").

2. Marketing note (marketingNote): A user-centric note in simpler language highlighting the _benefit_ of the change.
(e.g., "Loading pull requests is now faster and smoother thanks to improved data fetching!").

Rules:
- Each note MUST be brief: one or two sentences at most.
- Do NOT include information that is not present in the description or diff.
- If you cannot generate a meaningful and accurate note, return an empty string for that field.
- Respond only with the JSON object. Do not include any other text or explanations."""

RELEASE_NOTES_HUMAN = """Description: {description}
Diff: {diff}"""

DIFF_TRUNCATED_MARKER = "\n... (diff truncated)"
