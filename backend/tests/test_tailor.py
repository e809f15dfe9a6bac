from resume_optimizer.tailor import (
    draft_cover_letter,
    extract_keywords,
    make_diff_html,
    match_score,
    missing_keywords,
    optimize_resume_text,
)

JD = "Senior role. Terraform, Kafka, Kafka streaming, Python. Strong communication and communication skills."


def test_extract_keywords_prefers_tech_terms():
    kws = extract_keywords(JD, top_k=4)
    assert kws[0] == "kafka"
    assert set(kws[:3]) == {"kafka", "terraform", "python"}
    assert "and" not in kws


def test_match_score_and_missing_keywords():
    resume = "Built Kafka pipelines in Python."
    kws = ["kafka", "python", "terraform", "go"]
    assert missing_keywords(resume, kws) == ["terraform", "go"]
    assert match_score(resume, kws) == 50
    assert match_score(resume, []) == 0


def test_optimize_resume_text_only_adds_missing_terms():
    resume = "Jane Doe\nPython developer"
    assert optimize_resume_text(resume, ["python"]) == resume

    optimized = optimize_resume_text(resume, ["python", "kafka"])
    assert optimized.startswith(resume)
    assert optimized.endswith("Targeted Skills\nkafka\n")
    assert match_score(optimized, ["python", "kafka"]) == 100


def test_diff_html_escapes_keywords():
    html = make_diff_html("", ["<script>"])
    assert "&lt;script&gt;" in html
    assert "Suggested line to add" in html


def test_cover_letter_mentions_role_and_matches():
    letter = draft_cover_letter("Jane Doe\nPython and Kafka developer", ["python", "kafka", "go"], job_title="Data Engineer")
    assert "Data Engineer" in letter
    assert "python, kafka" in letter
    assert letter.rstrip().endswith("Jane Doe")

    generic = draft_cover_letter("Jane Doe", [], job_title=None)
    assert "this position" in generic
