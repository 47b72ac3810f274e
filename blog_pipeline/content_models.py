from typing import List, Literal

from pydantic import BaseModel, Field

ArticleLanguage = Literal["ru", "en"]


class PostInput(BaseModel):
    """Raw notes a post is generated from.

    Attributes:
        title: Post title
        content: Raw notes and links from the author
        tags: Tags for the post
        sources: Source links to cite
    """

    title: str
    content: str
    tags: List[str] = Field(default_factory=list)
    sources: List[str] = Field(default_factory=list)


class BlogArticle(BaseModel):
    """A blog article parsed from generated markdown.

    Attributes:
        title: Article title
        description: Meta description
        content: Markdown body without frontmatter
        lang: Article language
        tags: Tags from the frontmatter
        date: Publication date, YYYY-MM-DD
        slug: URL slug derived from the title
    """

    title: str
    description: str = ""
    content: str
    lang: ArticleLanguage
    tags: List[str] = Field(default_factory=list)
    date: str
    slug: str


class GeneratedPost(BaseModel):
    """Everything generated from one PostInput.

    Attributes:
        telegram: Short Telegram post (RU)
        blog_ru: Full article in Russian
        blog_en: English translation of the article
    """

    telegram: str
    blog_ru: BlogArticle
    blog_en: BlogArticle
