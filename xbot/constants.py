from __future__ import annotations

import logging

from auth import auth_flow

LOGGER = logging.getLogger("xbot.x_api")
APP_VERSION = "0.1.0"

X_API_BASE_URL = "https://api.x.com"
MAX_POST_LENGTH = 280

DEFAULT_REDIRECT_URI = "http://127.0.0.1:3000/callback"
DEFAULT_SCOPES = " ".join(auth_flow.DEFAULT_SCOPES)

DEFAULT_LLM_URL = "http://localhost:11434/api/generate"
DEFAULT_LLM_MODEL = "llama3.2:latest"

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000
DEFAULT_SCHEDULE_URL = "http://127.0.0.1:3000/tweet"
DEFAULT_SCHEDULE_INTERVAL_SECONDS = 4 * 60 * 60

DEFAULT_TOPICS = (
    # Tech deep dives
    "Why I'm betting on Bun over Node.js for future projects (and where it falls short)",
    "The one VSCode plugin that feels like cheating for productivity",
    "Rust is overhyped... unless you're working on *this* type of project",
    "How I hacked together a GPT-4 code reviewer for my PRs (and regretted it)",
    "Stop using 'any' in TypeScript. Here's how to actually embrace strictness.",
    "WebAssembly is quietly eating the stack. Here's why it matters.",
    "The dark art of debugging distributed systems: war stories & lessons",
    "Why your monorepo is a mess (and how to fix it)",
    # Hot takes
    "Next.js is becoming the new jQuery: fight me",
    "The 'AI-first' mindset is killing creativity in dev tools",
    "Open-source maintainers are not your free labor. Rant incoming.",
    "We're overcomparing frameworks. Build something instead.",
    "Hot take: TDD is great for tutorials. Real-world? It's complicated.",
    "The '10x developer' is a myth. Let's talk about the '0.1x team' instead.",
    # Underrated tools and practices
    "Using Obsidian for code knowledge management (not just notes)",
    "Why you should care about ASTs (and how to abuse them)",
    "The power of writing terrible code first (then refactoring later)",
    "How to turn Chrome DevTools into a full-stack debugging powerhouse",
    "Stop ignoring your terminal config. It's time to zsh-ify your life.",
    # Career
    "Why 'hard work' in tech is often just poor prioritization",
    "The art of saying 'this is good enough' and shipping",
    "Why I mentor junior devs (selfishly)",
    "Career advice nobody gives: sometimes, quit faster.",
    "The paradox of 'always learning' vs. avoiding tutorial hell",
    "Why I stopped chasing 'clean code' and embraced 'clear code'",
    # Dev life
    "When your 'quick fix' accidentally deletes prod data (a thread)",
    "The 5 stages of grief when your CI/CD pipeline breaks",
    "Why naming variables is the real final boss of programming",
    "The existential dread of `npm install` in a 5-year-old project",
    "Spent 4 hours automating a 5-minute task. Worth it.",
    "My IDE theme is dark because my soul is tired.",
)
