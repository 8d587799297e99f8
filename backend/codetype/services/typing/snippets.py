import logging
import random
import time
from dataclasses import dataclass, asdict
from datetime import date
from typing import List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snippet:
    id: str
    name: str
    language: str
    difficulty: str
    code: str

    def to_dict(self):
        return asdict(self)


LANGUAGES = (
    {'id': 'javascript', 'name': 'JavaScript', 'color': '#f7df1e'},
    {'id': 'typescript', 'name': 'TypeScript', 'color': '#3178c6'},
    {'id': 'python', 'name': 'Python', 'color': '#3776ab'},
    {'id': 'rust', 'name': 'Rust', 'color': '#dea584'},
    {'id': 'go', 'name': 'Go', 'color': '#00add8'},
    {'id': 'c', 'name': 'C', 'color': '#555555'},
)

DIFFICULTIES = (
    {'id': 'easy', 'label': 'Easy', 'color': '#22c55e'},
    {'id': 'medium', 'label': 'Medium', 'color': '#eab308'},
    {'id': 'hard', 'label': 'Hard', 'color': '#ef4444'},
)

LANGUAGE_IDS = frozenset(l['id'] for l in LANGUAGES)
DIFFICULTY_IDS = frozenset(d['id'] for d in DIFFICULTIES)

# Order is significant: the daily challenge indexes into this tuple.
SNIPPETS = (
    # JavaScript
    Snippet('js-1', 'Array Map', 'javascript', 'easy',
            "const doubled = numbers.map(n => n * 2);"),
    Snippet('js-2', 'Arrow Function', 'javascript', 'easy',
            "const greet = (name) => `Hello, ${name}!`;"),
    Snippet('js-3', 'Destructuring', 'javascript', 'easy',
            "const { name, age } = user;"),
    Snippet('js-4', 'Spread Operator', 'javascript', 'easy',
            "const merged = { ...defaults, ...options };"),
    Snippet('js-5', 'Filter Array', 'javascript', 'easy',
            "const adults = users.filter(u => u.age >= 18);"),
    Snippet('js-6', 'Promise Chain', 'javascript', 'medium',
            "fetch(url)\n"
            "  .then(res => res.json())\n"
            "  .then(data => console.log(data))\n"
            "  .catch(err => console.error(err));"),
    Snippet('js-7', 'Async/Await', 'javascript', 'medium',
            "async function fetchUser(id) {\n"
            "  const response = await fetch(`/api/users/${id}`);\n"
            "  return response.json();\n"
            "}"),
    Snippet('js-8', 'Reduce', 'javascript', 'medium',
            "const sum = numbers.reduce((acc, n) => acc + n, 0);"),
    # TypeScript
    Snippet('ts-1', 'Interface', 'typescript', 'easy',
            "interface User {\n"
            "  id: number;\n"
            "  name: string;\n"
            "  email: string;\n"
            "}"),
    Snippet('ts-2', 'Generic Function', 'typescript', 'medium',
            "function first<T>(arr: T[]): T | undefined {\n"
            "  return arr[0];\n"
            "}"),
    Snippet('ts-3', 'Type Guard', 'typescript', 'hard',
            "function isString(value: unknown): value is string {\n"
            "  return typeof value === 'string';\n"
            "}"),
    Snippet('ts-4', 'Mapped Type', 'typescript', 'hard',
            "type Readonly<T> = {\n"
            "  readonly [K in keyof T]: T[K];\n"
            "};"),
    # Python
    Snippet('py-1', 'List Comprehension', 'python', 'easy',
            "squares = [x**2 for x in range(10)]"),
    Snippet('py-2', 'Dict Comprehension', 'python', 'medium',
            "word_lengths = {word: len(word) for word in words}"),
    Snippet('py-3', 'Decorator', 'python', 'hard',
            "def timer(func):\n"
            "    def wrapper(*args, **kwargs):\n"
            "        start = time.time()\n"
            "        result = func(*args, **kwargs)\n"
            "        print(f\"Took {time.time() - start:.2f}s\")\n"
            "        return result\n"
            "    return wrapper"),
    Snippet('py-4', 'Context Manager', 'python', 'medium',
            "with open('file.txt', 'r') as f:\n"
            "    content = f.read()"),
    # Rust
    Snippet('rs-1', 'Match Expression', 'rust', 'medium',
            "match result {\n"
            "    Ok(value) => println!(\"{}\", value),\n"
            "    Err(e) => eprintln!(\"Error: {}\", e),\n"
            "}"),
    Snippet('rs-2', 'Option Handling', 'rust', 'medium',
            "let name = user.name.unwrap_or(\"Anonymous\".to_string());"),
    Snippet('rs-3', 'Iterator Chain', 'rust', 'hard',
            "let sum: i32 = numbers.iter().filter(|&n| *n > 0).sum();"),
    # Go
    Snippet('go-1', 'Error Handling', 'go', 'easy',
            "if err != nil {\n"
            "    return fmt.Errorf(\"failed: %w\", err)\n"
            "}"),
    Snippet('go-2', 'Goroutine', 'go', 'medium',
            "go func() {\n"
            "    result <- doWork()\n"
            "}()"),
    Snippet('go-3', 'Defer', 'go', 'easy',
            "defer file.Close()"),
    # C
    Snippet('c-1', 'Struct Definition', 'c', 'easy',
            "struct Point {\n"
            "    int x;\n"
            "    int y;\n"
            "};"),
    Snippet('c-2', 'Malloc & Free', 'c', 'medium',
            "int *arr = (int *)malloc(n * sizeof(int));\n"
            "if (arr == NULL) return -1;\n"
            "free(arr);"),
    Snippet('c-3', 'Linked List Node', 'c', 'medium',
            "struct Node {\n"
            "    int data;\n"
            "    struct Node *next;\n"
            "};\n"
            "\n"
            "struct Node *new_node(int val) {\n"
            "    struct Node *node = malloc(sizeof(struct Node));\n"
            "    node->data = val;\n"
            "    node->next = NULL;\n"
            "    return node;\n"
            "}"),
    Snippet('c-4', 'String Copy', 'c', 'easy',
            "char dest[256];\n"
            "strncpy(dest, src, sizeof(dest) - 1);\n"
            "dest[sizeof(dest) - 1] = '\\0';"),
    Snippet('c-5', 'File Read', 'c', 'medium',
            "FILE *fp = fopen(\"data.txt\", \"r\");\n"
            "if (fp == NULL) {\n"
            "    perror(\"fopen\");\n"
            "    return 1;\n"
            "}\n"
            "char buf[1024];\n"
            "while (fgets(buf, sizeof(buf), fp)) {\n"
            "    printf(\"%s\", buf);\n"
            "}\n"
            "fclose(fp);"),
    Snippet('c-6', 'Pointer Swap', 'c', 'easy',
            "void swap(int *a, int *b) {\n"
            "    int tmp = *a;\n"
            "    *a = *b;\n"
            "    *b = tmp;\n"
            "}"),
    # Later additions
    Snippet('ts-fetch', 'Fetch with Types', 'typescript', 'medium',
            "async function fetchUser(id: string): Promise<User> {\n"
            "  const res = await fetch(`/api/users/${id}`);\n"
            "  if (!res.ok) throw new Error(\"Not found\");\n"
            "  return res.json();\n"
            "}"),
    Snippet('py-listcomp', 'List Comprehension', 'python', 'easy',
            "squares = [x ** 2 for x in range(10) if x % 2 == 0]"),
    Snippet('rust-option', 'Option Handling', 'rust', 'medium',
            "fn find_user(id: u64) -> Option<User> {\n"
            "    users.iter().find(|u| u.id == id).cloned()\n"
            "}"),
    Snippet('js-destructure', 'Nested Destructuring', 'javascript', 'medium',
            "const { data: { users = [] }, error } = await response.json();"),
    Snippet('go-map', 'Map Iteration', 'go', 'medium',
            "for key, value := range config {\n"
            "    fmt.Printf(\"%s = %s\\n\", key, value)\n"
            "}"),
    Snippet('ts-generic', 'Generic Function', 'typescript', 'hard',
            "function groupBy<T, K extends string>(items: T[], key: (item: T) => K): Record<K, T[]> {\n"
            "  return items.reduce((acc, item) => {\n"
            "    const k = key(item);\n"
            "    (acc[k] ??= []).push(item);\n"
            "    return acc;\n"
            "  }, {} as Record<K, T[]>);\n"
            "}"),
    Snippet('py-decorator', 'Retry Decorator', 'python', 'hard',
            "def retry(max_attempts=3):\n"
            "    def decorator(func):\n"
            "        def wrapper(*args, **kwargs):\n"
            "            for i in range(max_attempts):\n"
            "                try:\n"
            "                    return func(*args, **kwargs)\n"
            "                except Exception:\n"
            "                    if i == max_attempts - 1:\n"
            "                        raise\n"
            "        return wrapper\n"
            "    return decorator"),
    Snippet('rust-iter', 'Iterator Chain', 'rust', 'hard',
            "let total: f64 = orders\n"
            "    .iter()\n"
            "    .filter(|o| o.status == Status::Complete)\n"
            "    .map(|o| o.items.iter().map(|i| i.price).sum::<f64>())\n"
            "    .sum();"),
)

_BY_ID = {s.id: s for s in SNIPPETS}


def filter_snippets(language: Optional[str] = None, difficulty: Optional[str] = None) -> List[Snippet]:
    out = list(SNIPPETS)
    if language:
        out = [s for s in out if s.language == language]
    if difficulty:
        out = [s for s in out if s.difficulty == difficulty]
    return out


def random_snippet(language: Optional[str] = None, difficulty: Optional[str] = None, rng=None) -> Snippet:
    """Pick a snippet uniformly among those matching the filters.

    A combination with no snippets (c/hard, rust/easy, ...) falls back to
    the whole catalog.
    """
    candidates = filter_snippets(language, difficulty)
    if not candidates:
        logger.debug("no snippets for language=%s difficulty=%s; using full catalog", language, difficulty)
        candidates = list(SNIPPETS)
    return (rng or random).choice(candidates)


def get_snippet(snippet_id: str) -> Optional[Snippet]:
    return _BY_ID.get(snippet_id)


def daily_seed(day: date) -> int:
    return day.year * 10000 + day.month * 100 + day.day


def daily_snippet(day: date) -> Snippet:
    """Snippet of the day; every client sees the same one for a given date.

    Two dates whose seeds share a residue modulo the catalog size map to the
    same snippet.
    """
    return SNIPPETS[daily_seed(day) % len(SNIPPETS)]


def daily_label(day: date) -> str:
    return f"{day:%b} {day.day}"


def create_custom_snippet(code: str, name: Optional[str] = None) -> Snippet:
    if not code or not code.strip():
        raise ValueError('Custom snippet code must not be empty')
    return Snippet(
        id=f"custom-{int(time.time() * 1000)}",
        name=(name or '').strip() or 'Custom Snippet',
        language='javascript',
        difficulty='medium',
        code=code.rstrip(),
    )
