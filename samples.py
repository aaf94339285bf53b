"""
Built-in sample clauses for trying the simplifier without a document at hand.
"""

import random
from typing import Optional

SAMPLE_DOCUMENTS = [
    {
        "title": "Employment Non-Compete",
        "text": (
            "The Employee hereby agrees that, during the term of employment and for a period of "
            "twelve (12) months following termination thereof, the Employee shall not, directly or "
            "indirectly, engage in any business activity that competes with the Employer's business "
            "within a radius of fifty (50) miles from the Employer's principal place of business. "
            "Notwithstanding the foregoing, this restriction shall not apply to passive investments "
            "wherein the Employee holds less than five percent (5%) equity interest."
        ),
    },
    {
        "title": "Service Agreement Payment",
        "text": (
            "The Client shall pay the Service Provider the sum of Five Thousand Dollars ($5,000.00) "
            "pursuant to the following schedule: (a) twenty-five percent (25%) upon execution of this "
            "Agreement; (b) fifty percent (50%) upon completion of Phase One deliverables; and (c) the "
            "remaining twenty-five percent (25%) within thirty (30) days of final delivery. In the event "
            "that payment is not received within fifteen (15) days of the due date, the Service Provider "
            "may, at its sole discretion, suspend all work forthwith until such payment is received."
        ),
    },
    {
        "title": "Liability Limitation",
        "text": (
            "In no event shall the Company be liable for any indirect, incidental, special, "
            "consequential, or punitive damages, including but not limited to loss of profits, data, "
            "use, goodwill, or other intangible losses, resulting from (i) your access to or use of or "
            "inability to access or use the Service; (ii) any conduct or content of any third party on "
            "the Service; (iii) any content obtained from the Service; and (iv) unauthorized access, use "
            "or alteration of your transmissions or content, whether based on warranty, contract, tort "
            "(including negligence) or any other legal theory, whether or not we have been informed of "
            "the possibility of such damage."
        ),
    },
]


def get_sample(index: Optional[int] = None) -> dict:
    """Return one sample document; a random one when no index is given."""
    if index is None:
        return random.choice(SAMPLE_DOCUMENTS)
    return SAMPLE_DOCUMENTS[index]
