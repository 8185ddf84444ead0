"""
Static knowledge base for local intent matching.

Entries are scanned in declaration order; the first entry reaching the highest
score wins ties.
"""
from dataclasses import dataclass

from src.shared.errors import SUPPORT_EMAIL

PRICING_TABLE = (
    "Leader Plan - Rs.16,400 - 100 Resume Credits\n"
    "Achiever Plan - Rs.13,200 - 50 Resume Credits\n"
    "Accelerator Plan - Rs.11,600 - 25 Resume Credits\n"
    "Starter Plan - Rs.1,640 - 10 Resume Credits\n"
    "Kickstart Plan - Rs.1,320 - 5 Resume Credits"
)


@dataclass(frozen=True)
class KnowledgeEntry:
    """Keyword phrases mapped to one canned plain-text response."""
    keywords: tuple[str, ...]
    response: str

    def __post_init__(self):
        if not self.keywords:
            raise ValueError("KnowledgeEntry needs at least one keyword")


KNOWLEDGE_BASE: tuple[KnowledgeEntry, ...] = (
    KnowledgeEntry(
        keywords=("what is primoboost", "about primoboost", "what does primoboost do", "primoboost ai"),
        response=(
            "PrimoBoost AI is an AI-powered career platform that helps you optimize your resume "
            "for ATS systems, match with relevant jobs, and prepare for interviews.\n\n"
            "Our tools analyze your resume against job descriptions and provide actionable "
            "improvements to increase your interview callback rate."
        ),
    ),
    KnowledgeEntry(
        keywords=("optimize", "resume optimization", "improve resume", "fix resume", "enhance resume", "rewrite resume"),
        response=(
            "To optimize your resume:\n\n"
            "1. Go to the Resume Optimizer from the AI Tools menu\n"
            "2. Upload your resume (PDF or text)\n"
            "3. Paste the job description you're targeting\n"
            "4. Our AI analyzes keyword alignment, ATS compatibility, and content quality\n"
            "5. Get specific suggestions to improve your match score\n\n"
            "The optimizer checks 16 parameters including skills match, experience relevance, and formatting."
        ),
    ),
    KnowledgeEntry(
        keywords=("ats score", "score checker", "check score", "ats check", "resume score", "how good is my resume"),
        response=(
            "The ATS Score Checker evaluates your resume across 16 key parameters:\n\n"
            "- Keyword matching with the job description\n"
            "- Skills alignment and gap analysis\n"
            "- Experience relevance scoring\n"
            "- Formatting and structure compliance\n"
            "- Content quality assessment\n\n"
            "Upload your resume and paste a job description to get your detailed score breakdown."
        ),
    ),
    KnowledgeEntry(
        keywords=("job", "jobs", "job listing", "latest jobs", "find jobs", "job search", "openings"),
        response=(
            "We post fresh job listings daily across multiple industries and experience levels.\n\n"
            "Visit the Latest Jobs page to browse current openings. You can filter by role, location, "
            "and experience level. Each listing shows the full job description so you can optimize "
            "your resume specifically for that role."
        ),
    ),
    KnowledgeEntry(
        keywords=("price", "pricing", "plan", "subscription", "cost", "buy", "payment", "pay", "credit"),
        response=(
            "Our plans (50% OFF - one-time purchase):\n\n"
            f"{PRICING_TABLE}\n\n"
            "Each plan includes Resume Optimizations, ATS Score Checks, and Premium Support.\n\n"
            f"For billing inquiries, email {SUPPORT_EMAIL}."
        ),
    ),
    KnowledgeEntry(
        keywords=("contact", "support", "help", "email", "reach", "talk to", "customer service"),
        response=(
            "You can reach our support team at:\n\n"
            f"Email: {SUPPORT_EMAIL}\n\n"
            "Our team typically responds within 2 minutes during business hours. For payment or "
            "billing issues, please include a screenshot of the issue in your email."
        ),
    ),
    KnowledgeEntry(
        keywords=("interview", "mock interview", "interview prep", "practice interview"),
        response=(
            "PrimoBoost offers multiple interview preparation tools:\n\n"
            "- Mock Interviews with AI-generated questions based on your target role\n"
            "- Resume-Based Interviews that test you on your own experience\n"
            "- Smart Coding Interviews for technical roles\n"
            "- Real-time feedback and performance scoring\n\n"
            "Find these under the AI Tools menu."
        ),
    ),
    KnowledgeEntry(
        keywords=("portfolio", "portfolio builder", "create portfolio", "build portfolio"),
        response=(
            "The Portfolio Builder helps you create a professional online portfolio showcasing your "
            "projects and skills.\n\n"
            "You can add project descriptions, link to repositories, and organize your work in a "
            "clean, presentable format that you can share with potential employers."
        ),
    ),
    KnowledgeEntry(
        keywords=("linkedin", "linkedin message", "linkedin generator", "cold message", "outreach"),
        response=(
            "The LinkedIn Message Generator creates personalized connection requests and outreach messages.\n\n"
            "It uses the job description and your profile to craft compelling messages for recruiters "
            "and hiring managers, helping you stand out in their inbox."
        ),
    ),
    KnowledgeEntry(
        keywords=("webinar", "webinars", "live session", "workshop"),
        response=(
            "We host regular webinars and live sessions on resume building, interview preparation, "
            "and career growth strategies.\n\n"
            "Check the Webinars page for upcoming sessions. You can register and get reminders "
            "before each event."
        ),
    ),
    KnowledgeEntry(
        keywords=("guided builder", "build resume", "create resume", "resume builder", "new resume"),
        response=(
            "The Guided Resume Builder walks you through creating a professional resume step by step.\n\n"
            "It covers all essential sections: contact info, summary, experience, education, skills, "
            "projects, and certifications. Perfect for freshers or anyone starting from scratch."
        ),
    ),
    KnowledgeEntry(
        keywords=("gaming", "aptitude", "spatial reasoning", "cognitive", "game", "assessment"),
        response=(
            "Our Gaming & Aptitude section helps you prepare for cognitive assessments used by top companies.\n\n"
            "Available games include Spatial Reasoning, Path Finder, Key Finder, and Bubble Selection - "
            "all modeled after real assessment tests used in hiring."
        ),
    ),
    KnowledgeEntry(
        keywords=("fresher", "no experience", "first job", "graduate", "entry level", "beginner"),
        response=(
            "PrimoBoost is great for freshers! Here's how to get started:\n\n"
            "1. Use the Guided Resume Builder to create your first resume\n"
            "2. Highlight projects, internships, and coursework\n"
            "3. Use the ATS Score Checker to ensure your resume passes filters\n"
            "4. Browse Latest Jobs for entry-level openings\n"
            "5. Practice with Mock Interviews\n\n"
            "Even without work experience, a well-optimized resume makes a strong impression."
        ),
    ),
    KnowledgeEntry(
        keywords=("pdf", "export", "download", "save resume"),
        response=(
            "You can export your optimized resume as a PDF directly from the preview panel.\n\n"
            "After optimization, click the Export/Download button to save your ATS-friendly resume "
            "ready for submission."
        ),
    ),
    KnowledgeEntry(
        keywords=("blog", "articles", "career tips", "resources"),
        response=(
            "Visit our Blog for the latest career tips, resume writing guides, interview strategies, "
            "and industry insights.\n\n"
            "We regularly publish content to help you stay ahead in your job search."
        ),
    ),
    KnowledgeEntry(
        keywords=("refund", "money back", "cancel", "cancellation"),
        response=(
            f"For refund requests or cancellation inquiries, please email {SUPPORT_EMAIL} with your "
            "account details and a screenshot of your purchase.\n\n"
            "Our team will review and respond within 2 minutes during business hours."
        ),
    ),
    KnowledgeEntry(
        keywords=("how to use", "tutorial", "guide", "getting started", "start", "how it works"),
        response=(
            "Getting started with PrimoBoost AI is easy:\n\n"
            "1. Sign up for a free account\n"
            "2. Upload your resume (PDF or paste text)\n"
            "3. Paste the job description you're targeting\n"
            "4. Get your ATS score and optimization suggestions\n"
            "5. Apply the improvements and export your optimized resume\n\n"
            "Check the Tutorials page for detailed walkthroughs of each feature."
        ),
    ),
)
