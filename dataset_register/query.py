"""
dataset_register.query
======================

The SELECT query that extracts dataset descriptions from a schema.org
source. Only IRI-identified datasets are matched. Identifier-like fields
(name, description, license, creator, distribution) are required;
everything else is ``OPTIONAL``.

The row cap is :data:`dataset_register.settings.SPARQL_LIMIT`; the
transformer uses the same constant to flag truncated result sets.
"""

from .settings import SPARQL_LIMIT
from .vocabulary import SCHEMA


def build_select_query(limit: int = SPARQL_LIMIT) -> str:
    """
    Return the dataset/creator/distribution SELECT query.

    Variable names match the keys of the mapping tables in
    :mod:`dataset_register.vocabulary`.
    """
    return f"""
  PREFIX schema: <{SCHEMA}>

  SELECT * WHERE {{
    ?dataset a schema:Dataset ;
      schema:name ?name ;
      schema:description ?description ;
      schema:license ?license ;
      schema:creator ?creator ;
      schema:distribution ?distribution .

      OPTIONAL {{ ?dataset schema:identifier ?identifier }}
      OPTIONAL {{ ?dataset schema:alternateName ?alternateName }}
      OPTIONAL {{ ?dataset schema:dateCreated ?dateCreated }}
      OPTIONAL {{ ?dataset schema:datePublished ?datePublished }}
      OPTIONAL {{ ?dataset schema:dateModified ?dateModified }}
      OPTIONAL {{ ?dataset schema:inLanguage ?language }}
      OPTIONAL {{ ?dataset schema:isBasedOnUrl ?source }}
      OPTIONAL {{ ?dataset schema:keywords ?keyword }}
      OPTIONAL {{ ?dataset schema:spatialCoverage ?spatial }}
      OPTIONAL {{ ?dataset schema:temporalCoverage ?temporal }}
      OPTIONAL {{ ?dataset schema:version ?version }}
      OPTIONAL {{ ?dataset schema:mainEntityOfPage ?mainEntityOfPage }}

      FILTER (isIRI(?dataset) && isIRI(?license))

    ?creator a schema:Organization ;
      schema:name ?creator_name .
      OPTIONAL {{ ?creator schema:email ?creator_email }}
      OPTIONAL {{ ?creator schema:url ?creator_url }}
      OPTIONAL {{ ?creator schema:sameAs ?creator_sameAs }}

    ?distribution a schema:DataDownload ;
      schema:contentUrl ?distribution_url ;
      schema:encodingFormat ?distribution_format .

      OPTIONAL {{ ?distribution schema:fileFormat ?distribution_mediaType }}
      OPTIONAL {{ ?distribution schema:datePublished ?distribution_datePublished }}
      OPTIONAL {{ ?distribution schema:dateModified ?distribution_dateModified }}
      OPTIONAL {{ ?distribution schema:description ?distribution_description }}
      OPTIONAL {{ ?distribution schema:inLanguage ?distribution_language }}
      OPTIONAL {{ ?distribution schema:license ?distribution_license }}
      OPTIONAL {{ ?distribution schema:name ?distribution_name }}
      OPTIONAL {{ ?distribution schema:contentSize ?distribution_size }}
  }} LIMIT {limit}
"""


SELECT_QUERY = build_select_query()
