import re
from collections import Counter
from html import escape
from typing import List, Optional

STOP = set("""
a an and or the is are was were to for of in on at with by from using use used built implemented developed
our you your we will who what this that have has able must should can work working years year experience
software engineer developer role team teams job position candidate including across about into strong
""".split())

TECH = {
    "python", "java", "c++", "typescript", "javascript", "react", "next.js", "node", "aws", "gcp", "azure",
    "kubernetes", "docker", "sql", "postgres", "redis", "go", "fastapi", "django", "terraform", "kafka",
}

def tokenize(txt: str) -> List[str]:
    words = [w.rstrip(".") for w in re.findall(r"[A-Za-z][A-Za-z0-9\-\+\.#]{1,}", txt.lower())]
    return [w for w in words if w not in STOP and len(w) > 2]

def extract_keywords(jd_text: str, top_k=10) -> List[str]:
    toks = tokenize(jd_text)
    freq = Counter(toks)
    # tech tokens first, then by frequency; ties keep first-seen order
    ranked = sorted(freq.items(), key=lambda kv: (kv[0] in TECH, kv[1]), reverse=True)
    return [w for w, _ in ranked[:top_k]]

def missing_keywords(resume_text: str, keywords: List[str]) -> List[str]:
    present = set(tokenize(resume_text))
    return [k for k in keywords if k not in present]

def match_score(resume_text: str, keywords: List[str]) -> int:
    """Percentage of job keywords that already appear in the resume."""
    if not keywords:
        return 0
    found = len(keywords) - len(missing_keywords(resume_text, keywords))
    return round(100 * found / len(keywords))

def optimize_resume_text(resume_text: str, keywords: List[str]) -> str:
    missing = missing_keywords(resume_text, keywords)
    if not missing:
        return resume_text
    # Surface the posting's vocabulary without inventing experience
    return resume_text.rstrip() + "\n\nTargeted Skills\n" + ", ".join(missing) + "\n"

def make_diff_html(base_resume_text: str, keywords: List[str]) -> str:
    missing = missing_keywords(base_resume_text, keywords)
    html = "<h4>Suggested Keywords</h4><ul>"
    for k in keywords:
        mark = "✅" if k not in missing else "➕"
        html += f"<li>{mark} {escape(k)}</li>"
    html += "</ul>"
    if missing:
        html += "<h4>Suggested line to add</h4><pre>• Applied "
        html += ", ".join(escape(k) for k in missing[:5])
        html += " across projects to reduce latency / improve reliability.</pre>"
    return html

def draft_cover_letter(resume_text: str, keywords: List[str], job_title: Optional[str] = None) -> str:
    lines = [ln.strip() for ln in resume_text.splitlines() if ln.strip()]
    name = lines[0] if lines else ""
    matched = [k for k in keywords if k not in missing_keywords(resume_text, keywords)]
    role = job_title or "this position"

    body = [
        "Dear Hiring Manager,",
        "",
        f"I am excited to apply for {role}.",
    ]
    if matched:
        body.append(f"My background includes hands-on work with {', '.join(matched[:5])}, "
                    "which lines up closely with what you are looking for.")
    body += [
        "I would welcome the chance to discuss how I can contribute to your team.",
        "",
        "Sincerely,",
        name,
    ]
    return "\n".join(body).rstrip() + "\n"
