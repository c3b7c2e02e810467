# ==== SUPPORTED INDUSTRIES ==== #

"""
Industry categories accepted by the analyzer.

Each industry carries the keyword vocabulary the heuristic scorer rewards
and a display name for prompts and clients.
"""

from enum import Enum
from typing import Dict, List


class Industry(str, Enum):
    """Industry category of the email campaign."""
    
    E_COMMERCE = "e-commerce"
    SAAS = "SaaS"
    RETAIL = "retail"
    HEALTHCARE = "healthcare"
    FINANCE = "finance"
    EDUCATION = "education"
    TECHNOLOGY = "technology"
    REAL_ESTATE = "real-estate"
    AUTOMOTIVE = "automotive"
    FOOD_BEVERAGE = "food-beverage"


SUPPORTED_INDUSTRIES: List[str] = [industry.value for industry in Industry]


INDUSTRY_KEYWORDS: Dict[Industry, List[str]] = {
    Industry.E_COMMERCE: ["sale", "discount", "offer", "deal", "save", "buy", "shop", "cart", "checkout"],
    Industry.SAAS: ["free", "trial", "demo", "upgrade", "feature", "productivity", "efficiency", "automation"],
    Industry.RETAIL: ["new", "trending", "popular", "bestseller", "exclusive", "limited", "collection"],
    Industry.HEALTHCARE: ["health", "wellness", "care", "treatment", "doctor", "medical"],
    Industry.FINANCE: ["investment", "savings", "loan", "credit", "financial", "money", "wealth"],
    Industry.EDUCATION: ["learn", "course", "training", "skill", "education", "knowledge", "study"],
    Industry.TECHNOLOGY: ["innovation", "digital", "tech", "software", "hardware", "solution"],
    Industry.REAL_ESTATE: ["property", "home", "house", "apartment", "investment", "market"],
    Industry.AUTOMOTIVE: ["car", "vehicle", "auto", "drive", "transportation", "mobility"],
    Industry.FOOD_BEVERAGE: ["food", "restaurant", "dining", "taste", "flavor", "recipe", "cooking"],
}


INDUSTRY_DISPLAY_NAMES: Dict[Industry, str] = {
    Industry.E_COMMERCE: "E-commerce",
    Industry.SAAS: "SaaS",
    Industry.RETAIL: "Retail",
    Industry.HEALTHCARE: "Healthcare",
    Industry.FINANCE: "Finance",
    Industry.EDUCATION: "Education",
    Industry.TECHNOLOGY: "Technology",
    Industry.REAL_ESTATE: "Real Estate",
    Industry.AUTOMOTIVE: "Automotive",
    Industry.FOOD_BEVERAGE: "Food & Beverage",
}


def get_industry_keywords(industry: Industry) -> List[str]:
    """Keyword vocabulary for an industry, empty when none is defined."""
    return INDUSTRY_KEYWORDS.get(industry, [])
