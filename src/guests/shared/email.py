"""EmailAddress value object for validated guest email addresses."""

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import String

from guests.domain import guests


@guests.value_object
class EmailAddress:
    """A structurally valid email address.

    Exactly one @, non-empty local and domain parts without edge dots, a
    dotted domain (or a bracketed address literal), no whitespace and no
    forbidden characters.
    """

    address: String(required=True, max_length=254)

    @invariant.post
    def verify_email_address(self):
        email = self.address
        invalid = ValidationError({"email": [f"Invalid email address: {email!r}"]})

        if any(blank in email for blank in (" ", "\t", "\n")):
            raise invalid
        if email.count("@") != 1:
            raise invalid

        local_part, domain_part = email.split("@", 1)
        literal = domain_part.startswith("[") and domain_part.endswith("]")

        if not local_part or local_part.startswith(".") or local_part.endswith("."):
            raise invalid
        if not domain_part or domain_part.startswith(".") or domain_part.endswith("."):
            raise invalid
        if not literal:
            if "." not in domain_part:
                raise invalid
            if any(label.startswith("-") or label.endswith("-") for label in domain_part.split(".")):
                raise invalid
        if ".." in local_part or ".." in domain_part:
            raise invalid

        for forbidden in (";", ",", "(", ")", '"', ":", "<", ">", "[", "]", "\\"):
            if forbidden in email and not (forbidden in "[]" and literal):
                raise invalid
