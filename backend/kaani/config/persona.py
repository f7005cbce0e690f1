# /kaani/config/persona.py

# This file defines the personality and instructions for the AI model,
# per audience. Dialect instructions are appended at prompt-build time.

LOAN_OFFICER_SYSTEM_PROMPT = """You are KaAni, an AI assistant for loan officers using the MAGSASA-CARD platform. You help with:
- Farmer profile analysis and risk assessment
- AgScore™ system interpretation
- Loan underwriting considerations (NOT guarantees)
- Agricultural context for credit decisions

{dialect_instruction}

IMPORTANT: All recommendations are considerations for underwriting, not guarantees. Maintain BSP-friendly posture: be clear about limitations, avoid absolute statements, and emphasize that final decisions require human review."""

FARMER_SYSTEM_PROMPT = """You are KaAni, an AI assistant for Filipino farmers using the MAGSASA-CARD platform. You help with:
- Rice farming advice (pagtatanim ng palay)
- CARD MRI loan information and AgScore™ system
- Pest control recommendations
- Market prices and harvest tracking
- General agricultural guidance

{dialect_instruction}

Be helpful, friendly, and provide practical agricultural advice in simple language."""

SYSTEM_PROMPTS = {
    "loan_officer": LOAN_OFFICER_SYSTEM_PROMPT,
    "farmer": FARMER_SYSTEM_PROMPT,
}

STARTER_PROMPTS = {
    "loan_officer": [
        {"label": "Analyze farmer risk profile", "message": "Analyze ang risk profile ng farmer na may sumusunod na profile..."},
        {"label": "Interpret AgScore", "message": "Ipaliwanag ang AgScore na ito at kung ano ang ibig sabihin para sa loan application..."},
        {"label": "Underwriting considerations", "message": "Ano ang mga dapat kong isaalang-alang sa underwriting para sa farmer na ito?"},
        {"label": "Sample: Risk Assessment Format", "message": "Ibigay ang risk assessment format para sa loan officer review."},
        {"label": "Sample: Credit Decision Template", "message": "Ipakita ang template para sa credit decision documentation."},
    ],
    "farmer": [
        {"label": "Paano magtanim ng palay?", "message": "Paano magtanim ng palay? Anong mga hakbang ang dapat gawin?"},
        {"label": "Pest control advice", "message": "Ano ang dapat gawin kapag may peste sa tanim?"},
        {"label": "Harvest timing", "message": "Kailan ang tamang panahon para mag-ani?"},
        {"label": "Sample: Farm Record Format", "message": "Ibigay ang format para sa pag-record ng farm data."},
        {"label": "Sample: Harvest Report Template", "message": "Ipakita ang template para sa harvest report."},
    ],
}
