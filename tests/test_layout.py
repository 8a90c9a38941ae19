import unittest

from statementledger.layout import group_lines, reconstruct_text
from statementledger.models import PositionedFragment


def frag(text, x, y):
  return PositionedFragment(text, x, y)


class GroupLinesTest(unittest.TestCase):
  def test_same_baseline_joins_left_to_right(self):
    lines = group_lines([frag('B', 100, 700), frag('A', 10, 701.5), frag('C', 10, 680)])
    self.assertEqual([ln.text for ln in lines], ['A  B', 'C'])

  def test_tolerance_is_strict(self):
    lines = group_lines([frag('A', 10, 700), frag('B', 10, 697)])
    self.assertEqual(len(lines), 2)
    lines = group_lines([frag('A', 10, 700), frag('B', 10, 697)], tolerance=3.5)
    self.assertEqual(len(lines), 1)

  def test_top_to_bottom(self):
    lines = group_lines([frag('low', 10, 100), frag('high', 10, 500)])
    self.assertEqual([ln.text for ln in lines], ['high', 'low'])

  def test_blank_fragments_dropped(self):
    lines = group_lines([frag('  ', 10, 100), frag('', 20, 100), frag('x', 30, 100)])
    self.assertEqual(len(lines), 1)
    self.assertEqual(lines[0].text, 'x')


class ReconstructTextTest(unittest.TestCase):
  def test_pages(self):
    page1 = group_lines([frag('A', 10, 700), frag('B', 50, 700), frag('C', 10, 600)])
    page2 = group_lines([frag('D', 10, 700)])
    self.assertEqual(reconstruct_text([page1, page2]), 'A  B\nC\n\nD\n\n')

  def test_empty(self):
    self.assertEqual(reconstruct_text([]), '')


if __name__ == '__main__':
  unittest.main()
