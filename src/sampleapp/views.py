"""HTML views, rendered from ``templates/``."""

from okapi.templating import Template

from sampleapp.models import Person

GITHUB_URL = "https://github.com/giraffe-fsharp/Giraffe"


def person_view(model: Person) -> Template:
    return Template("person.html", model=model, github_url=GITHUB_URL)
