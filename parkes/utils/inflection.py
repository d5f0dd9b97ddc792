import re
import inflect

pluralizer = inflect.engine()

_camel_boundary = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def singularize(word: str) -> str:
    # singular_noun returns False when the word is already singular
    return pluralizer.singular_noun(word) or word


def pluralize(word: str) -> str:
    return pluralizer.plural(singularize(word))


def model_name(name: str) -> str:
    """Class name of the model behind a resource name: 'users' -> 'User'"""
    singular = singularize(name)
    return singular[:1].upper() + singular[1:]


def param_name(name: str) -> str:
    """Parameter name a model is addressed by: 'BlogPost' -> 'blog_post'"""
    snake = _camel_boundary.sub("_", singularize(name))
    return snake.lower()


def column_key_name(name: str, key: str) -> str:
    return f"{param_name(name)}_{key}"
