"""Stopword Sets

Language-specific stopword lists used by the normalizer. Entries are stored
in normalized form (lowercase ASCII, accents and apostrophes removed) since
they are matched against tokens that already went through the cleaning
steps.
"""

from typing import FrozenSet

from .errors import ConfigurationError

DEFAULT_LANGUAGE = "en"

ENGLISH_STOPWORDS = frozenset(
    "a about above after again against all am an and any are arent as at be"
    " because been before being below between both but by cant cannot could"
    " couldnt did didnt do does doesnt doing dont down during each few for from"
    " further had hadnt has hasnt have havent having he hed hell hes her here"
    " heres hers herself him himself his how hows i id ill im ive if in into is"
    " isnt it its itself lets me more most mustnt my myself no nor not of off on"
    " once only or other ought our ours ourselves out over own same shant she"
    " shed shell shes should shouldnt so some such than that thats the their"
    " theirs them themselves then there theres these they theyd theyll theyre"
    " theyve this those through to too under until up very was wasnt we wed"
    " well were weve werent what whats when whens where wheres which while who"
    " whos whom why whys with wont would wouldnt you youd youll youre youve your"
    " yours yourself yourselves".split()
)

FRENCH_STOPWORDS = frozenset(
    "a ai aie aient aies ait alors as au aucun aura aurai auraient aurais"
    " aurait auras aurez auriez aurions aurons auront aussi autre aux avaient"
    " avais avait avant avec avez aviez avions avoir avons ayant ayez ayons"
    " bon c ca car ce ceci cela celle celles celui ces cet cette ceux chaque ci"
    " comme comment d dans de des deux devrait doit donc dos du elle elles en"
    " encore es est et etaient etais etait etant ete etes etiez etions etre eu"
    " eue eues eurent eus eusse eut eux fait faites fois font furent fus fut"
    " hors ici il ils j je juste l la le les leur leurs lui m ma mais me meme"
    " memes mes moi moins mon n ne ni nos notre nous on ont ou par parce pas"
    " peu peut plupart pour pourquoi qu quand que quel quelle quelles quels qui"
    " s sa sans se sera serai seraient serais serait seras serez seriez serions"
    " serons seront ses seulement si sien son sont sous soyez sujet sur t ta"
    " tandis te tellement tels tes toi ton tous tout toute toutes tres tu un une"
    " vos votre vous vu y".split()
)

_STOPWORDS_BY_LANGUAGE = {
    "en": ENGLISH_STOPWORDS,
    "fr": FRENCH_STOPWORDS,
}


def available_languages() -> list[str]:
    return sorted(_STOPWORDS_BY_LANGUAGE)


def get_stopwords(language: str = DEFAULT_LANGUAGE) -> FrozenSet[str]:
    """Return the stopword set for a language code (``en`` or ``fr``).

    Raises:
        ConfigurationError: If no list exists for ``language``
    """
    key = (language or "").strip().lower()
    try:
        return _STOPWORDS_BY_LANGUAGE[key]
    except KeyError:
        raise ConfigurationError(
            f"No stopword list for language {language!r}; "
            f"expected one of {available_languages()}"
        ) from None
