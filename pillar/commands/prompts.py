AGENT_PROMPT = """\
# AI Agent System Prompt for Pillar

Copy and paste the following into your AI agent's system prompt or instructions.

---

1. You coordinate your work using the `pillar` CLI.

```bash
pillar --help
File-based project, milestone, and issue tracking.
```

#### Workflow Guidance

You should generally create projects, milestones, and issues via the CLI, and then expand
on the generated Markdown files to capture deep design details, requirements, and
acceptance criteria.

The normal flow for building a complex feature:
1. **Define data structures** within the issue or a separate design doc.
2. **Define core algorithms/interactions** and invariants.
3. **Build tests** ranging from unit to integration.
4. **Build tools/REPLs** for experimenting and verifying functionality layer by layer.

Always update issue status as you progress (`todo` -> `in-progress` -> `completed`),
for example `pillar issue edit my-project/001 --status in-progress`.

Record decisions and progress notes as comments, for example
`pillar comment add issue my-project "Switched to the streaming parser." 001`

---
"""


def agent_prompt() -> str:
    return AGENT_PROMPT
