"""
git-pr - Work with GitHub pull requests from the terminal.

A git plugin that:
1. Lists open pull requests with age, labels and description
2. Shows a pull request's commits and the files each one touched
3. Checks out a pull request branch locally (same-repo or fork)
4. Submits reviews (approve, request changes, comment) and closes PRs

Usage:
    git pr list                      # Open PRs, newest first
    git pr show-details 42           # Commits and changed files
    git pr show-diff 42              # Diff against the base branch
    git pr pull 42                   # Fetch and checkout the PR branch
    git pr submit-review 42 --reject # Request changes and close
"""

__version__ = "0.1.0"
