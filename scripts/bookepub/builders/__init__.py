from bookepub.builders.epub import EpubBuilder

BUILDERS = {
    "epub": EpubBuilder,
}

DEFAULT_FORMATS = ["epub"]
