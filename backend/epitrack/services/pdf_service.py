"""
PDF "termo de entrega" (EPI delivery receipt).

One page per process: company, collaborator, the issued EPIs with their CA
and quantity, the lifecycle dates and signature lines.
"""
from io import BytesIO
from datetime import datetime
from typing import Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from epitrack.core.dates import utcnow
from epitrack.models.process import Process

TERMO_TEXTO = (
    "Declaro ter recebido gratuitamente os Equipamentos de Proteção Individual (EPI) "
    "relacionados acima, comprometendo-me a usá-los apenas para a finalidade a que se "
    "destinam, responsabilizar-me por sua guarda e conservação e comunicar qualquer "
    "alteração que os torne impróprios para uso, conforme a NR-6."
)


def _fmt(value: Optional[datetime]) -> str:
    return value.strftime("%d/%m/%Y %H:%M") if value else "-"


def _status(process: Process) -> str:
    if process.data_devolucao:
        return "DEVOLVIDO"
    if process.status_entrega:
        return "ENTREGUE"
    return "PENDENTE"


def generate_termo_pdf(process: Process) -> BytesIO:
    """
    Render the receipt for an already loaded (hydrated) process.

    Returns:
        BytesIO positioned at 0, ready for StreamingResponse
    """
    empresa = process.empresa
    colaborador = process.colaborador

    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, topMargin=0.5*inch, bottomMargin=0.5*inch)
    elements = []
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'TermoTitle',
        parent=styles['Heading1'],
        fontSize=18,
        textColor=colors.HexColor('#1f2937'),
        alignment=TA_CENTER,
        spaceAfter=12,
    )
    heading_style = ParagraphStyle(
        'TermoHeading',
        parent=styles['Heading2'],
        fontSize=12,
        textColor=colors.HexColor('#1f2937'),
        spaceAfter=6,
    )
    normal_style = ParagraphStyle(
        'TermoNormal',
        parent=styles['Normal'],
        fontSize=10,
        textColor=colors.HexColor('#374151'),
    )

    elements.append(Paragraph("TERMO DE ENTREGA DE EPI", title_style))
    elements.append(Spacer(1, 0.2*inch))

    info_data = [[
        Paragraph(
            f"<b>{escape(empresa.nome_fantasia)}</b><br/>"
            f"{escape(empresa.razao_social or '')}<br/>"
            f"CNPJ: {escape(empresa.cnpj)}",
            normal_style,
        ),
        Paragraph(
            f"<b>Processo:</b> {escape(process.id_processo)}<br/>"
            f"<b>Agendado:</b> {_fmt(process.data_agendada)}<br/>"
            f"<b>Entrega:</b> {_fmt(process.data_entrega)}<br/>"
            f"<b>Devolução:</b> {_fmt(process.data_devolucao)}<br/>"
            f"<b>Status:</b> {_status(process)}",
            normal_style,
        ),
    ]]
    info_table = Table(info_data, colWidths=[3.5*inch, 3*inch])
    info_table.setStyle(TableStyle([
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('TOPPADDING', (0, 0), (-1, -1), 6),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
    ]))
    elements.append(info_table)
    elements.append(Spacer(1, 0.2*inch))

    elements.append(Paragraph("<b>Colaborador</b>", heading_style))
    elements.append(Paragraph(
        f"<b>{escape(colaborador.nome_colaborador)}</b><br/>CPF: {escape(colaborador.cpf)}",
        normal_style,
    ))
    elements.append(Spacer(1, 0.2*inch))

    items_data = [[
        Paragraph("<b>EPI</b>", normal_style),
        Paragraph("<b>CA</b>", normal_style),
        Paragraph("<b>Quantidade</b>", normal_style),
    ]]
    for pe in process.process_epis:
        items_data.append([
            Paragraph(escape(pe.epi.nome_epi), normal_style),
            Paragraph(escape(pe.epi.ca), normal_style),
            Paragraph(str(pe.quantidade), normal_style),
        ])
    items_table = Table(items_data, colWidths=[3.5*inch, 1.5*inch, 1.5*inch])
    items_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#f3f4f6')),
        ('ALIGN', (2, 0), (2, -1), 'RIGHT'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#fafafa')]),
        ('TOPPADDING', (0, 0), (-1, -1), 6),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
    ]))
    elements.append(items_table)
    elements.append(Spacer(1, 0.3*inch))

    if process.observacoes:
        elements.append(Paragraph("<b>Observações</b>", heading_style))
        elements.append(Paragraph(escape(process.observacoes), normal_style))
        elements.append(Spacer(1, 0.2*inch))

    elements.append(Paragraph(TERMO_TEXTO, normal_style))
    elements.append(Spacer(1, 0.8*inch))

    signatures = Table(
        [["_" * 35, "_" * 35], ["Colaborador", "Responsável pela entrega"]],
        colWidths=[3.25*inch, 3.25*inch],
    )
    signatures.setStyle(TableStyle([
        ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
        ('FONTSIZE', (0, 1), (-1, 1), 9),
    ]))
    elements.append(signatures)

    footer_style = ParagraphStyle(
        'Footer',
        parent=styles['Normal'],
        fontSize=8,
        textColor=colors.grey,
        alignment=TA_CENTER,
    )
    elements.append(Spacer(1, 0.5*inch))
    elements.append(Paragraph(f"Documento gerado em {utcnow().strftime('%d/%m/%Y %H:%M')} UTC", footer_style))

    doc.build(elements)
    buffer.seek(0)
    return buffer
